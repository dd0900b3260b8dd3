"""Pydantic schemas for Event and participation."""
from datetime import datetime, timezone
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from biubiustar.schemas.common import check_url, reject_null
from biubiustar.schemas.user import UserBrief

Tag = Annotated[str, Field(min_length=1, max_length=50)]
EventStatusFilter = Literal["upcoming", "ongoing", "past", "all"]


def _naive_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class EventCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=2000)
    start_time: datetime = Field(..., alias="startTime")
    end_time: datetime = Field(..., alias="endTime")
    location: str | None = Field(None, max_length=200)
    max_participants: int | None = Field(None, ge=1, alias="maxParticipants")
    image_url: str | None = Field(None, alias="imageUrl")
    tags: list[Tag] = Field(default_factory=list, max_length=10)
    is_public: bool = Field(True, alias="isPublic")

    @field_validator("start_time")
    @classmethod
    def _start_utc(cls, v: datetime) -> datetime:
        return _naive_utc(v)

    @field_validator("end_time")
    @classmethod
    def _end_after_start(cls, v: datetime, info: ValidationInfo) -> datetime:
        v = _naive_utc(v)
        start = info.data.get("start_time")
        if start is not None and v <= start:
            raise ValueError("End time must be after start time")
        return v

    @field_validator("image_url")
    @classmethod
    def _image_url(cls, v: str | None) -> str | None:
        return check_url(v)


class EventUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, min_length=1, max_length=2000)
    start_time: datetime | None = Field(None, alias="startTime")
    end_time: datetime | None = Field(None, alias="endTime")
    location: str | None = Field(None, max_length=200)
    max_participants: int | None = Field(None, ge=1, alias="maxParticipants")
    image_url: str | None = Field(None, alias="imageUrl")
    tags: list[Tag] | None = Field(None, max_length=10)
    is_public: bool | None = Field(None, alias="isPublic")

    @field_validator("title", "description", "start_time", "end_time", "tags", "is_public", mode="before")
    @classmethod
    def _not_null(cls, v):
        return reject_null(v)

    @field_validator("start_time")
    @classmethod
    def _start_utc(cls, v: datetime | None) -> datetime | None:
        return _naive_utc(v)

    @field_validator("end_time")
    @classmethod
    def _end_after_start(cls, v: datetime | None, info: ValidationInfo) -> datetime | None:
        v = _naive_utc(v)
        start = info.data.get("start_time")
        if v is not None and start is not None and v <= start:
            raise ValueError("End time must be after start time")
        return v

    @field_validator("image_url")
    @classmethod
    def _image_url(cls, v: str | None) -> str | None:
        return check_url(v)


class EventResponse(BaseModel):
    id: UUID
    organizer_id: UUID
    title: str
    description: str
    start_date: datetime
    end_date: datetime
    location: str | None = None
    max_participants: int | None = None
    image_url: str | None = None
    tags: list[str] = []
    status: str
    is_featured: bool = False
    created_at: datetime
    updated_at: datetime | None = None
    organizer: UserBrief | None = None
    participant_count: int = Field(0, serialization_alias="participantCount")
    is_participating: bool = Field(False, serialization_alias="isParticipating")

    model_config = {"from_attributes": True}


class JoinedEventResponse(EventResponse):
    joined_at: datetime = Field(serialization_alias="joinedAt")


class ParticipantResponse(UserBrief):
    joined_at: datetime = Field(serialization_alias="joinedAt")
