"""Participant registration import and participant counts."""
import logging
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.database import insert_if_absent
from app.errors import ValidationError
from app.models.attendance import Attendance, normalize_status
from app.models.event import Event
from app.models.participant import Participant

logger = logging.getLogger(__name__)


def count_participants(db: Session, blocklisted: bool) -> int:
    return (
        db.query(func.count(Participant.id))
        .filter(Participant.is_blocklisted.is_(blocklisted))
        .scalar()
        or 0
    )


def bulk_create_with_event_dedup(db: Session, items: list[dict[str, Any]]) -> dict[str, Any]:
    """Register participants for events from parsed rows.

    Participants are matched by email (case-insensitive) or created. A row
    whose participant already has attendance at that event, in the store
    or earlier in the same batch, counts as a duplicate and writes nothing.
    """
    if not items:
        raise ValidationError("participants must be a non-empty list")
    for item in items:
        if not str(item.get("full_name") or "").strip():
            raise ValidationError("All participants must have full_name")
        if not str(item.get("event_id") or "").strip():
            raise ValidationError("All participants must have event_id")
        if normalize_status(item.get("attendance_status")) is None:
            raise ValidationError(f"Invalid attendance status: {item.get('attendance_status')}")

    event_ids = {str(i["event_id"]).strip() for i in items}
    known_events = {row[0] for row in db.query(Event.id).filter(Event.id.in_(event_ids)).all()}
    missing = sorted(event_ids - known_events)
    if missing:
        raise ValidationError(f"Unknown event_id: {', '.join(missing)}")

    emails = {str(i["email"]).strip().lower() for i in items}
    by_email = {
        p.email.lower(): p
        for p in db.query(Participant).filter(func.lower(Participant.email).in_(emails)).all()
    }

    created: list[Participant] = []
    duplicates = 0
    for item in items:
        email = str(item["email"]).strip().lower()
        event_id = str(item["event_id"]).strip()
        participant = by_email.get(email)
        if participant is None:
            participant = Participant(
                name=item["full_name"].strip(),
                email=email,
                phone=item.get("phone"),
                is_blocklisted=False,
            )
            db.add(participant)
            db.flush()
            by_email[email] = participant
            created.append(participant)

        registered = insert_if_absent(
            db,
            Attendance,
            {
                "event_id": event_id,
                "participant_id": participant.id,
                "status": normalize_status(item.get("attendance_status")),
            },
            ["event_id", "participant_id"],
        )
        if not registered:
            duplicates += 1

    db.commit()
    logger.info(
        "Participant batch import: %d rows, %d participants created, %d duplicates",
        len(items), len(created), duplicates,
    )
    return {"imported": len(items) - duplicates, "created": created, "duplicates": duplicates}
