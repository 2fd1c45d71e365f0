"""Attendance API routes — every write is followed by a blocklist reconcile."""
import logging
from dataclasses import asdict
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.attendance import (
    AttendanceDetailOut,
    AttendanceMark,
    AttendanceMarkResponse,
    AttendanceStats,
    AttendanceStatusUpdate,
    BulkImportRequest,
    BulkImportResponse,
    DeleteResponse,
)
from app.services import attendance_service, blocklist_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=AttendanceMarkResponse, status_code=status.HTTP_201_CREATED)
def mark_attendance(payload: AttendanceMark, db: Session = Depends(get_db)):
    """Mark a participant attended or no-show for an event (upsert)."""
    record = attendance_service.mark_attendance(
        db=db,
        event_id=payload.event_id,
        participant_id=payload.participant_id,
        status=payload.status,
    )
    result = blocklist_service.run_auto_reconcile(db)
    return {"attendance": record, "blocklist": asdict(result)}


@router.post("/bulk-import", response_model=BulkImportResponse, status_code=status.HTTP_201_CREATED)
def bulk_import(payload: BulkImportRequest, db: Session = Depends(get_db)):
    """Import parsed attendance rows keyed by email."""
    summary = attendance_service.bulk_import(db, [r.model_dump() for r in payload.records])
    result = blocklist_service.run_auto_reconcile(db)
    return {**summary, "blocklist": asdict(result)}


@router.get("/event/{event_id}", response_model=list[AttendanceDetailOut])
def list_event_attendance(event_id: str, db: Session = Depends(get_db)):
    return attendance_service.list_by_event(db, event_id)


@router.get("/participant/{participant_id}", response_model=list[AttendanceDetailOut])
def list_participant_attendance(participant_id: str, db: Session = Depends(get_db)):
    return attendance_service.list_by_participant(db, participant_id)


@router.get("/no-shows", response_model=list[AttendanceDetailOut])
def list_no_shows(db: Session = Depends(get_db)):
    return attendance_service.list_no_shows(db)


@router.get("/no-shows/by-participant", response_model=dict[str, int])
def no_shows_by_participant(db: Session = Depends(get_db)):
    """No-show count keyed by participant id."""
    return attendance_service.count_no_shows_by_participant(db)


@router.get("/stats/overview", response_model=AttendanceStats)
def attendance_overview(db: Session = Depends(get_db)):
    return attendance_service.attendance_stats(db)


@router.put("/{attendance_id}", response_model=AttendanceMarkResponse)
def update_attendance(attendance_id: str, payload: AttendanceStatusUpdate, db: Session = Depends(get_db)):
    record = attendance_service.update_attendance(db, attendance_id, payload.status)
    result = blocklist_service.run_auto_reconcile(db)
    return {"attendance": record, "blocklist": asdict(result)}


@router.delete("/{attendance_id}", response_model=DeleteResponse)
def delete_attendance(attendance_id: str, db: Session = Depends(get_db)):
    """Delete one row; the participant may fall back under the threshold."""
    attendance_service.delete_attendance(db, attendance_id)
    result = blocklist_service.run_auto_reconcile(db)
    return {"message": "Attendance record deleted", "blocklist": asdict(result)}
