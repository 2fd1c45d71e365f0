"""Pydantic schemas for Attendance and reconcile results."""
from __future__ import annotations
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel

from app.models.attendance import AttendanceStatus
from app.schemas.event import EventOut
from app.schemas.participant import ParticipantOut


class AttendanceMark(BaseModel):
    event_id: str
    participant_id: str
    status: Optional[str] = None  # attended, no_show; legacy not_attended accepted


class AttendanceStatusUpdate(BaseModel):
    status: Optional[str] = None


class AttendanceOut(BaseModel):
    id: str
    event_id: str
    participant_id: str
    status: Optional[AttendanceStatus] = None
    marked_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class AttendanceDetailOut(AttendanceOut):
    participant: Optional[ParticipantOut] = None
    event: Optional[EventOut] = None


class ReconcileErrorOut(BaseModel):
    participant_id: str
    action: str
    message: str

    model_config = {"from_attributes": True}


class ReconcileOut(BaseModel):
    added: int
    removed: int
    errors: list[ReconcileErrorOut] = []
    skipped: bool = False

    model_config = {"from_attributes": True}


class AttendanceMarkResponse(BaseModel):
    attendance: AttendanceOut
    blocklist: ReconcileOut


class DeleteResponse(BaseModel):
    message: str
    blocklist: ReconcileOut


class BulkImportRecord(BaseModel):
    name: Optional[str] = None
    email: str
    event_id: str
    attendance_status: Optional[str] = None


class BulkImportRequest(BaseModel):
    records: list[BulkImportRecord]


class BulkImportResponse(BaseModel):
    imported: int
    created_participants: int
    skipped_blocklisted: int
    errors: list[dict[str, Any]] = []
    blocklist: ReconcileOut


class AttendanceStats(BaseModel):
    total: int
    attended: int
    no_shows: int
    unique_no_show_participants: int


class ParticipantBatchImportResponse(BaseModel):
    imported: int
    duplicates: int
    data: list[ParticipantOut]
    blocklist: ReconcileOut
