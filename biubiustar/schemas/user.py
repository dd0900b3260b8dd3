"""Pydantic schemas for User."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from biubiustar.schemas.common import check_url


class UserCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6)
    display_name: str | None = Field(None, max_length=100, alias="displayName")


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    display_name: str | None = Field(None, min_length=1, max_length=50, alias="displayName")
    bio: str | None = Field(None, max_length=500)
    location: str | None = Field(None, max_length=100)
    website: str | None = None
    avatar_url: str | None = Field(None, alias="avatarUrl")

    @field_validator("website", "avatar_url")
    @classmethod
    def _url_or_empty(cls, v: str | None) -> str | None:
        return check_url(v, allow_empty=True)


class UserBrief(BaseModel):
    """Display fields embedded as author / organizer / participant."""
    id: UUID
    username: str
    display_name: str | None = None
    avatar_url: str | None = None
    is_verified: bool = False

    model_config = {"from_attributes": True}


class UserPublic(UserBrief):
    bio: str | None = None
    location: str | None = None
    website: str | None = None
    role: str = "user"
    follower_count: int = 0
    following_count: int = 0
    post_count: int = 0
    created_at: datetime
    updated_at: datetime | None = None


class UserResponse(UserPublic):
    """Own profile and admin views: includes email."""
    email: str


class UserProfile(UserPublic):
    is_following: bool = Field(False, serialization_alias="isFollowing")


class UserStats(BaseModel):
    posts: int = 0
    events: int = 0
    followers: int = 0
    following: int = 0
    likes: int = 0


def user_to_profile(user, is_following: bool = False) -> UserProfile:
    profile = UserProfile.model_validate(user)
    profile.is_following = is_following
    return profile
