"""Per-event participant and attendance routes with bulk delete and undo."""
import logging
from dataclasses import asdict
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_undo_buffer
from app.schemas.attendance import AttendanceDetailOut
from app.schemas.event_participant import (
    AttendanceBulkDelete,
    DeleteAllResponse,
    DeleteSelectedResponse,
    ParticipantBulkDelete,
    UndoDeleteRequest,
    UndoDeleteResponse,
)
from app.schemas.participant import ParticipantOut
from app.services import blocklist_service, event_participant_service
from app.services.undo_buffer import DeleteKind, DeleteUndoBuffer

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/{event_id}/participants", response_model=list[ParticipantOut])
def list_event_participants(event_id: str, db: Session = Depends(get_db)):
    return event_participant_service.list_event_participants(db, event_id)


@router.get("/{event_id}/attendance", response_model=list[AttendanceDetailOut])
def list_event_attendance(event_id: str, db: Session = Depends(get_db)):
    return event_participant_service.list_event_attendance(db, event_id)


@router.delete("/{event_id}/participants", response_model=DeleteAllResponse)
def delete_all_participants(
    event_id: str,
    db: Session = Depends(get_db),
    buffer: DeleteUndoBuffer = Depends(get_undo_buffer),
):
    """Delete the event's participants; returns a one-time undo token."""
    outcome = event_participant_service.delete_all(db, buffer, event_id, DeleteKind.participant)
    result = blocklist_service.run_auto_reconcile(db)
    return {**outcome, "blocklist": asdict(result)}


@router.post("/{event_id}/participants/bulk-delete", response_model=DeleteSelectedResponse)
def delete_selected_participants(event_id: str, payload: ParticipantBulkDelete, db: Session = Depends(get_db)):
    outcome = event_participant_service.delete_selected(
        db, event_id, DeleteKind.participant, payload.participant_ids
    )
    result = blocklist_service.run_auto_reconcile(db)
    return {**outcome, "blocklist": asdict(result)}


@router.delete("/{event_id}/attendance", response_model=DeleteAllResponse)
def delete_all_attendance(
    event_id: str,
    db: Session = Depends(get_db),
    buffer: DeleteUndoBuffer = Depends(get_undo_buffer),
):
    """Delete the event's attendance rows, keeping participants; returns a one-time undo token."""
    outcome = event_participant_service.delete_all(db, buffer, event_id, DeleteKind.attendance)
    result = blocklist_service.run_auto_reconcile(db)
    return {**outcome, "blocklist": asdict(result)}


@router.post("/{event_id}/attendance/bulk-delete", response_model=DeleteSelectedResponse)
def delete_selected_attendance(event_id: str, payload: AttendanceBulkDelete, db: Session = Depends(get_db)):
    outcome = event_participant_service.delete_selected(
        db, event_id, DeleteKind.attendance, payload.attendance_ids
    )
    result = blocklist_service.run_auto_reconcile(db)
    return {**outcome, "blocklist": asdict(result)}


@router.post("/{event_id}/participants/undo-delete", response_model=UndoDeleteResponse)
def undo_delete(
    event_id: str,
    payload: UndoDeleteRequest,
    db: Session = Depends(get_db),
    buffer: DeleteUndoBuffer = Depends(get_undo_buffer),
):
    """Restore the event's last bulk delete. Each token works once."""
    outcome = event_participant_service.undo(db, buffer, event_id, payload.type, payload.undo_token)
    result = blocklist_service.run_auto_reconcile(db)
    return {**asdict(outcome), "blocklist": asdict(result)}
