"""Pydantic schemas for Post."""
from datetime import datetime
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from biubiustar.schemas.common import check_url
from biubiustar.schemas.user import UserBrief

Tag = Annotated[str, Field(min_length=1, max_length=30)]
PostListType = Literal["timeline", "user", "following"]


class PostCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str | None = Field(None, min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=2000)
    category: str | None = Field(None, max_length=50)
    tags: list[Tag] = Field(default_factory=list, max_length=10)
    image_urls: list[str] = Field(default_factory=list, max_length=4, alias="imageUrls")
    location: str | None = Field(None, max_length=100)
    status: Literal["draft", "published"] = "published"

    @field_validator("image_urls")
    @classmethod
    def _image_urls(cls, v: list[str]) -> list[str]:
        return [check_url(url) for url in v]


class PostResponse(BaseModel):
    id: UUID
    user_id: UUID
    title: str | None = None
    content: str
    category: str | None = None
    tags: list[str] = []
    image_urls: list[str] = []
    location: str | None = None
    status: str
    rejection_reason: str | None = None
    reviewed_at: datetime | None = None
    reviewed_by: UUID | None = None
    created_at: datetime
    updated_at: datetime | None = None
    author: UserBrief | None = None
    like_count: int = Field(0, serialization_alias="likeCount")
    comment_count: int = Field(0, serialization_alias="commentCount")
    is_liked: bool = Field(False, serialization_alias="isLiked")

    model_config = {"from_attributes": True}


class LikeState(BaseModel):
    like_count: int = Field(serialization_alias="likeCount")
    is_liked: bool = Field(serialization_alias="isLiked")
