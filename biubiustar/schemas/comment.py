"""Pydantic schemas for Comment."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from biubiustar.schemas.user import UserBrief


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=1000)


class CommentResponse(BaseModel):
    id: UUID
    post_id: UUID
    user_id: UUID
    content: str
    created_at: datetime
    author: UserBrief | None = None

    model_config = {"from_attributes": True}


class AdminCommentResponse(CommentResponse):
    post_title: str | None = None
    post_content: str | None = None
