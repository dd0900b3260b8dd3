"""Pydantic schemas for the contact form."""
from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

CooperationType = Literal["technical", "business", "investment", "other"]
ContactStatus = Literal["pending", "processing", "completed"]


class ContactCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    company: str | None = Field(None, max_length=200)
    phone: str | None = Field(None, max_length=50)
    cooperation_type: CooperationType
    description: str = Field(..., min_length=1, max_length=2000)


class ContactResponse(BaseModel):
    id: UUID
    name: str
    email: str
    company: str | None = None
    phone: str | None = None
    cooperation_type: str
    description: str
    status: str
    is_suspicious: bool = False
    admin_notes: str | None = None
    processed_by: UUID | None = None
    processed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class ContactUpdate(BaseModel):
    status: ContactStatus
    admin_notes: str | None = Field(None, max_length=2000)
