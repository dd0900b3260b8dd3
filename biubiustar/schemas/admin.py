"""Pydantic schemas for admin-only requests and views."""
from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from biubiustar.schemas.common import reject_null
from biubiustar.schemas.user import UserBrief

Role = Literal["user", "admin", "super_admin"]


class AdminUserUpdate(BaseModel):
    role: Role | None = None
    is_verified: bool | None = None
    display_name: str | None = Field(None, min_length=1, max_length=50)
    bio: str | None = Field(None, max_length=500)

    @field_validator("role", "is_verified", mode="before")
    @classmethod
    def _not_null(cls, v):
        return reject_null(v)


class RejectRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


class BatchModerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    post_ids: list[UUID] = Field(..., min_length=1, max_length=100, alias="postIds")
    action: Literal["approve", "reject"]
    reason: str | None = Field(None, max_length=500)


class BatchModerateResult(BaseModel):
    processed: int
    skipped: int
    post_ids: list[UUID] = Field(serialization_alias="postIds")


class AdminEventUpdate(BaseModel):
    status: Literal["upcoming", "ongoing", "completed", "cancelled"] | None = None
    is_featured: bool | None = None

    @field_validator("status", "is_featured", mode="before")
    @classmethod
    def _not_null(cls, v):
        return reject_null(v)


class ModerationHistoryResponse(BaseModel):
    id: UUID
    post_id: UUID
    admin_id: UUID | None = None
    action: str
    previous_status: str
    new_status: str
    reason: str | None = None
    created_at: datetime
    admin: UserBrief | None = None

    model_config = {"from_attributes": True}


class ModerationStats(BaseModel):
    pending: int = 0
    published: int = 0
    approved: int = 0
    rejected: int = 0
    today_approved: int = Field(0, serialization_alias="todayApproved")
    today_rejected: int = Field(0, serialization_alias="todayRejected")
    today_reviewed: int = Field(0, serialization_alias="todayReviewed")


class TrendPoint(BaseModel):
    date: str
    count: int


class DashboardStats(BaseModel):
    total_users: int = Field(0, serialization_alias="totalUsers")
    total_posts: int = Field(0, serialization_alias="totalPosts")
    total_events: int = Field(0, serialization_alias="totalEvents")
    total_comments: int = Field(0, serialization_alias="totalComments")
    total_likes: int = Field(0, serialization_alias="totalLikes")
    pending_posts: int = Field(0, serialization_alias="pendingPosts")
    total_contacts: int = Field(0, serialization_alias="totalContacts")
    user_trend: list[TrendPoint] = Field(default_factory=list, serialization_alias="userTrend")
    post_trend: list[TrendPoint] = Field(default_factory=list, serialization_alias="postTrend")
