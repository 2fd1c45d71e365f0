"""Pydantic schemas for Volunteers, work assignments and volunteer attendance."""
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from app.models.attendance import AttendanceStatus
from app.models.volunteer import WorkStatus
from app.schemas.event import EventOut


class VolunteerCreate(BaseModel):
    name: str
    email: EmailStr
    comment: str
    place: Optional[str] = None

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class VolunteerUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    comment: Optional[str] = None
    place: Optional[str] = None


class VolunteerStatusUpdate(BaseModel):
    is_active: bool


class VolunteerOut(BaseModel):
    id: str
    name: str
    email: str
    comment: str
    place: Optional[str] = None
    is_active: bool
    joined_date: datetime
    created_at: datetime

    model_config = {"from_attributes": True}


class WorkAssignmentCreate(BaseModel):
    volunteer_id: str
    event_id: str
    task_name: str
    task_status: Optional[str] = None  # assigned (default), in_progress, completed


class WorkStatusUpdate(BaseModel):
    task_status: str


class WorkAssignmentOut(BaseModel):
    id: str
    volunteer_id: str
    event_id: str
    task_name: str
    task_status: WorkStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class WorkHistoryOut(WorkAssignmentOut):
    event: Optional[EventOut] = None


class VolunteerAttendanceMark(BaseModel):
    event_id: str
    status: Optional[str] = None


class VolunteerAttendanceOut(BaseModel):
    id: str
    volunteer_id: str
    event_id: str
    status: AttendanceStatus
    created_at: datetime
    event: Optional[EventOut] = None

    model_config = {"from_attributes": True}


class VolunteerAttendancePage(BaseModel):
    records: list[VolunteerAttendanceOut]
    total: int
    page: int
    total_pages: int


class VolunteerAttendanceStats(BaseModel):
    total: int
    attended: int
    no_shows: int
    attendance_rate: int


class VolunteerAttendanceRecord(BaseModel):
    name: Optional[str] = None
    email: str
    event_id: str
    attendance_status: Optional[str] = None


class VolunteerAttendanceImport(BaseModel):
    records: list[VolunteerAttendanceRecord] = Field(default_factory=list)


class VolunteerAttendanceImportResponse(BaseModel):
    imported: int
    failed: int
    errors: list[dict[str, Any]] = []
