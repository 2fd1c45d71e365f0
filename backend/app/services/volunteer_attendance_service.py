"""Volunteer attendance — per-event records, history and import.

Kept apart from participant attendance: volunteer no-shows are reported
in stats only and never reach the blocklist.
"""
import logging
import math
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.database import insert_if_absent
from app.errors import NotFoundError, ValidationError
from app.models.attendance import AttendanceStatus, normalize_status
from app.models.event import Event
from app.models.volunteer import Volunteer, VolunteerAttendance

logger = logging.getLogger(__name__)


def _upsert(db: Session, volunteer_id: str, event_id: str, status: AttendanceStatus) -> None:
    inserted = insert_if_absent(
        db,
        VolunteerAttendance,
        {"volunteer_id": volunteer_id, "event_id": event_id, "status": status},
        ["volunteer_id", "event_id"],
    )
    if not inserted:
        (
            db.query(VolunteerAttendance)
            .filter(VolunteerAttendance.volunteer_id == volunteer_id, VolunteerAttendance.event_id == event_id)
            .update({"status": status}, synchronize_session=False)
        )


def record_attendance(db: Session, volunteer_id: str, event_id: str, status: Optional[str]) -> VolunteerAttendance:
    parsed = normalize_status(status)
    if parsed is None:
        raise ValidationError(f"Invalid attendance status: {status}")
    if not db.get(Volunteer, volunteer_id):
        raise NotFoundError("Volunteer not found")
    if not db.get(Event, event_id):
        raise NotFoundError("Event not found")

    _upsert(db, volunteer_id, event_id, parsed)
    db.commit()
    logger.info("Volunteer %s marked %s at event %s", volunteer_id, parsed.value, event_id)
    return (
        db.query(VolunteerAttendance)
        .filter(VolunteerAttendance.volunteer_id == volunteer_id, VolunteerAttendance.event_id == event_id)
        .one()
    )


def _history_query(db: Session, volunteer_id: str):
    if not db.get(Volunteer, volunteer_id):
        raise NotFoundError("Volunteer not found")
    return (
        db.query(VolunteerAttendance)
        .options(joinedload(VolunteerAttendance.event))
        .filter(VolunteerAttendance.volunteer_id == volunteer_id)
        .order_by(VolunteerAttendance.created_at.desc())
    )


def recent_attendance(db: Session, volunteer_id: str, limit: int = 5) -> list[VolunteerAttendance]:
    return _history_query(db, volunteer_id).limit(limit).all()


def attendance_history(db: Session, volunteer_id: str, page: int = 1, limit: int = 20) -> dict[str, Any]:
    """One page of a volunteer's attendance, newest first."""
    if page < 1 or limit < 1:
        raise ValidationError("page and limit must be >= 1")
    query = _history_query(db, volunteer_id)
    total = query.count()
    records = query.offset((page - 1) * limit).limit(limit).all()
    return {
        "records": records,
        "total": total,
        "page": page,
        "total_pages": math.ceil(total / limit),
    }


def attendance_stats(db: Session, volunteer_id: str) -> dict[str, Any]:
    if not db.get(Volunteer, volunteer_id):
        raise NotFoundError("Volunteer not found")
    counts = dict(
        db.query(VolunteerAttendance.status, func.count(VolunteerAttendance.id))
        .filter(VolunteerAttendance.volunteer_id == volunteer_id)
        .group_by(VolunteerAttendance.status)
        .all()
    )
    attended = counts.get(AttendanceStatus.attended, 0)
    no_shows = counts.get(AttendanceStatus.no_show, 0)
    total = attended + no_shows
    return {
        "total": total,
        "attended": attended,
        "no_shows": no_shows,
        "attendance_rate": round(attended / total * 100) if total else 0,
    }


def bulk_import(db: Session, records: list[dict[str, Any]]) -> dict[str, Any]:
    """Import parsed volunteer attendance keyed by email. Unknown volunteers are reported, not created."""
    if not records:
        raise ValidationError("records must be a non-empty list")

    emails = {str(r.get("email") or "").strip().lower() for r in records} - {""}
    by_email = {
        v.email.lower(): v.id
        for v in db.query(Volunteer).filter(func.lower(Volunteer.email).in_(emails)).all()
    } if emails else {}
    event_ids = {str(r.get("event_id") or "").strip() for r in records} - {""}
    known_events = {
        row[0] for row in db.query(Event.id).filter(Event.id.in_(event_ids)).all()
    } if event_ids else set()

    imported = 0
    errors: list[dict[str, Any]] = []
    for index, record in enumerate(records):
        email = str(record.get("email") or "").strip().lower()
        event_id = str(record.get("event_id") or "").strip()
        status = normalize_status(record.get("attendance_status"))

        if not email or not event_id:
            errors.append({"index": index, "message": "email and event_id are required"})
            continue
        if email not in by_email:
            errors.append({"index": index, "message": f"Volunteer not found with email: {email}"})
            continue
        if event_id not in known_events:
            errors.append({"index": index, "message": f"Unknown event_id: {event_id}"})
            continue
        if status is None:
            errors.append({"index": index, "message": f"Invalid attendance status: {record.get('attendance_status')}"})
            continue

        _upsert(db, by_email[email], event_id, status)
        imported += 1

    db.commit()
    logger.info("Volunteer attendance import: %d imported, %d failed", imported, len(errors))
    return {"imported": imported, "failed": len(errors), "errors": errors}
