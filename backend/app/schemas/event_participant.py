"""Pydantic schemas for per-event bulk delete and undo."""
from typing import Any
from pydantic import BaseModel, Field

from app.schemas.attendance import ReconcileOut
from app.services.undo_buffer import DeleteKind


class ParticipantBulkDelete(BaseModel):
    participant_ids: list[str]


class AttendanceBulkDelete(BaseModel):
    attendance_ids: list[str]


class UndoDeleteRequest(BaseModel):
    type: DeleteKind
    undo_token: str = Field(..., min_length=1)


class DeleteAllResponse(BaseModel):
    deleted: int
    undo_token: str
    blocklist: ReconcileOut


class DeleteSelectedResponse(BaseModel):
    deleted: int
    blocklist: ReconcileOut


class UndoDeleteResponse(BaseModel):
    restored: int
    errors: list[dict[str, Any]] = []
    blocklist: ReconcileOut
