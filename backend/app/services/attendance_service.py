"""Attendance service — marking, listing and no-show aggregation.

Every write goes through an upsert on (event_id, participant_id) so an
event never holds two rows for the same participant. Callers run the
blocklist reconciler after a successful write.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from app.database import insert_if_absent
from app.errors import NotFoundError, StoreFailure, ValidationError
from app.models.attendance import Attendance, AttendanceStatus, normalize_status
from app.models.event import Event
from app.models.participant import Participant

logger = logging.getLogger(__name__)


def no_show_filter():
    """Rows counting as a no-show: status no_show, or the legacy NULL."""
    return or_(Attendance.status == AttendanceStatus.no_show, Attendance.status.is_(None))


def count_no_shows_by_participant(db: Session) -> dict[str, int]:
    """Single grouped aggregation of no-shows per participant."""
    try:
        rows = (
            db.query(Attendance.participant_id, func.count(Attendance.id))
            .filter(no_show_filter())
            .group_by(Attendance.participant_id)
            .all()
        )
    except SQLAlchemyError as exc:
        raise StoreFailure(f"Failed to count no-shows: {exc}") from exc
    return {participant_id: count for participant_id, count in rows}


def count_no_shows(db: Session, participant_id: str) -> int:
    return (
        db.query(func.count(Attendance.id))
        .filter(Attendance.participant_id == participant_id, no_show_filter())
        .scalar()
        or 0
    )


def _parse_status(raw: Optional[str]) -> AttendanceStatus:
    status = normalize_status(raw)
    if status is None:
        raise ValidationError(f"Invalid attendance status: {raw}")
    return status


def upsert_attendance(
    db: Session,
    event_id: str,
    participant_id: str,
    status: AttendanceStatus,
    marked_at: Optional[datetime] = None,
) -> None:
    """Insert the (event, participant) row or overwrite its status. Does not commit."""
    marked_at = marked_at or datetime.now(timezone.utc)
    inserted = insert_if_absent(
        db,
        Attendance,
        {
            "event_id": event_id,
            "participant_id": participant_id,
            "status": status,
            "marked_at": marked_at,
        },
        ["event_id", "participant_id"],
    )
    if not inserted:
        (
            db.query(Attendance)
            .filter(Attendance.event_id == event_id, Attendance.participant_id == participant_id)
            .update({"status": status, "marked_at": marked_at}, synchronize_session=False)
        )


def mark_attendance(db: Session, event_id: str, participant_id: str, status: Optional[str]) -> Attendance:
    """Record that a participant attended, or did not attend, an event."""
    parsed = _parse_status(status)
    if not db.get(Event, event_id):
        raise NotFoundError("Event not found")
    if not db.get(Participant, participant_id):
        raise NotFoundError("Participant not found")

    upsert_attendance(db, event_id, participant_id, parsed)
    db.commit()
    logger.info("Marked participant %s as %s at event %s", participant_id, parsed.value, event_id)
    return (
        db.query(Attendance)
        .filter(Attendance.event_id == event_id, Attendance.participant_id == participant_id)
        .one()
    )


def update_attendance(db: Session, attendance_id: str, status: Optional[str]) -> Attendance:
    parsed = _parse_status(status)
    record = db.get(Attendance, attendance_id)
    if not record:
        raise NotFoundError("Attendance record not found")
    record.status = parsed
    record.marked_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(record)
    logger.info("Attendance %s set to %s", attendance_id, parsed.value)
    return record


def delete_attendance(db: Session, attendance_id: str) -> str:
    """Delete one attendance row and return the participant it belonged to."""
    record = db.get(Attendance, attendance_id)
    if not record:
        raise NotFoundError("Attendance record not found")
    participant_id = record.participant_id
    db.delete(record)
    db.commit()
    logger.info("Deleted attendance %s (participant %s)", attendance_id, participant_id)
    return participant_id


def list_by_event(db: Session, event_id: str) -> list[Attendance]:
    return (
        db.query(Attendance)
        .options(joinedload(Attendance.participant))
        .filter(Attendance.event_id == event_id)
        .order_by(Attendance.created_at.desc())
        .all()
    )


def list_by_participant(db: Session, participant_id: str) -> list[Attendance]:
    return (
        db.query(Attendance)
        .options(joinedload(Attendance.event))
        .filter(Attendance.participant_id == participant_id)
        .order_by(Attendance.created_at.desc())
        .all()
    )


def list_no_shows(db: Session) -> list[Attendance]:
    """All no-show rows with their participant and event, newest first."""
    return (
        db.query(Attendance)
        .options(joinedload(Attendance.participant), joinedload(Attendance.event))
        .filter(no_show_filter())
        .order_by(Attendance.created_at.desc())
        .all()
    )


def attendance_stats(db: Session) -> dict[str, int]:
    total = db.query(func.count(Attendance.id)).scalar() or 0
    attended = (
        db.query(func.count(Attendance.id))
        .filter(Attendance.status == AttendanceStatus.attended)
        .scalar()
        or 0
    )
    by_participant = count_no_shows_by_participant(db)
    return {
        "total": total,
        "attended": attended,
        "no_shows": sum(by_participant.values()),
        "unique_no_show_participants": len(by_participant),
    }


def bulk_import(db: Session, records: list[dict[str, Any]]) -> dict[str, Any]:
    """Import already-parsed attendance records keyed by participant email.

    Unknown emails create a participant. Blocklisted participants are
    skipped. Invalid records are reported, not fatal.
    """
    if not records:
        raise ValidationError("records must be a non-empty list")

    event_ids = {str(r.get("event_id") or "").strip() for r in records} - {""}
    known_events = {
        row[0] for row in db.query(Event.id).filter(Event.id.in_(event_ids)).all()
    } if event_ids else set()

    emails = {str(r.get("email") or "").strip().lower() for r in records} - {""}
    by_email = {
        p.email.lower(): p
        for p in db.query(Participant).filter(func.lower(Participant.email).in_(emails)).all()
    } if emails else {}

    imported = 0
    created = 0
    skipped_blocklisted = 0
    errors: list[dict[str, Any]] = []

    for index, record in enumerate(records):
        email = str(record.get("email") or "").strip().lower()
        event_id = str(record.get("event_id") or "").strip()
        status = normalize_status(record.get("attendance_status"))

        if not email:
            errors.append({"index": index, "message": "email is required"})
            continue
        if event_id not in known_events:
            errors.append({"index": index, "message": f"Unknown event_id: {event_id or '(missing)'}"})
            continue
        if status is None:
            errors.append({"index": index, "message": f"Invalid attendance status: {record.get('attendance_status')}"})
            continue

        participant = by_email.get(email)
        if participant is None:
            name = str(record.get("name") or "").strip() or email.split("@")[0]
            participant = Participant(name=name, email=email, is_blocklisted=False)
            db.add(participant)
            db.flush()
            by_email[email] = participant
            created += 1
        elif participant.is_blocklisted:
            skipped_blocklisted += 1
            continue

        upsert_attendance(db, event_id, participant.id, status)
        imported += 1

    db.commit()
    logger.info(
        "Bulk import: %d imported, %d participants created, %d blocklisted skipped, %d errors",
        imported, created, skipped_blocklisted, len(errors),
    )
    return {
        "imported": imported,
        "created_participants": created,
        "skipped_blocklisted": skipped_blocklisted,
        "errors": errors,
    }
