"""Pydantic schemas for Participants."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, field_validator


class ParticipantCreate(BaseModel):
    name: str
    email: EmailStr
    phone: Optional[str] = None

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class ParticipantUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v


class ParticipantOut(BaseModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    is_blocklisted: bool
    blocklist_reason: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ParticipantBatchItem(BaseModel):
    full_name: str
    email: EmailStr
    phone: Optional[str] = None
    event_id: str
    attendance_status: Optional[str] = None


class ParticipantBatchImport(BaseModel):
    participants: list[ParticipantBatchItem]


class ParticipantCount(BaseModel):
    count: int
