"""Dashboard aggregates built from the attendance and blocklist services."""
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.models.attendance import Attendance
from app.models.event import Event
from app.models.participant import Participant
from app.services import attendance_service, blocklist_service


def summary(db: Session) -> dict[str, Any]:
    """Headline counts. `blocklisted` uses the same count as the blocklist page."""
    stats = attendance_service.attendance_stats(db)
    return {
        "events": db.query(func.count(Event.id)).scalar() or 0,
        "participants": db.query(func.count(Participant.id)).scalar() or 0,
        "no_shows": stats["no_shows"],
        "blocklisted": blocklist_service.blocklist_count(db),
        "last_updated": datetime.now(timezone.utc),
    }


def detailed_stats(db: Session) -> dict[str, Any]:
    stats = attendance_service.attendance_stats(db)
    return {
        "total": stats["total"],
        "attended": stats["attended"],
        "no_shows": {
            "total": stats["no_shows"],
            "unique_participants": stats["unique_no_show_participants"],
            "by_participant": attendance_service.count_no_shows_by_participant(db),
        },
        "blocklist": blocklist_service.blocklist_stats(db),
    }


def overview(db: Session, recent: int = 10) -> dict[str, Any]:
    """Summary plus the most recently marked attendance rows."""
    rows = (
        db.query(Attendance)
        .options(joinedload(Attendance.participant), joinedload(Attendance.event))
        .order_by(Attendance.marked_at.desc(), Attendance.created_at.desc())
        .limit(recent)
        .all()
    )
    return {"summary": summary(db), "recent_activity": rows, "last_updated": datetime.now(timezone.utc)}
