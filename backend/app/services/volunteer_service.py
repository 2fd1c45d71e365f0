"""Volunteer service — volunteer records and their work assignments."""
import logging
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.errors import ConflictError, NotFoundError, ValidationError
from app.models.event import Event
from app.models.volunteer import Volunteer, VolunteerWork, WorkStatus

logger = logging.getLogger(__name__)

SORT_ORDERS = ("newest", "oldest")


def _email_taken(db: Session, email: str, exclude_id: Optional[str] = None) -> bool:
    query = db.query(Volunteer).filter(func.lower(Volunteer.email) == email.lower())
    if exclude_id:
        query = query.filter(Volunteer.id != exclude_id)
    return query.first() is not None


def _require_text(value: Optional[str], field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} is required")
    return value.strip()


def get_volunteer(db: Session, volunteer_id: str) -> Volunteer:
    volunteer = db.get(Volunteer, volunteer_id)
    if not volunteer:
        raise NotFoundError("Volunteer not found")
    return volunteer


def create_volunteer(
    db: Session,
    name: str,
    email: str,
    comment: str,
    place: Optional[str] = None,
) -> Volunteer:
    name = _require_text(name, "name")
    comment = _require_text(comment, "comment")
    email = email.lower()
    if _email_taken(db, email):
        raise ConflictError(f"Volunteer with email {email} already exists")

    volunteer = Volunteer(name=name, email=email, comment=comment, place=place, is_active=True)
    db.add(volunteer)
    db.commit()
    db.refresh(volunteer)
    logger.info("Created volunteer %s (%s)", volunteer.id, volunteer.email)
    return volunteer


def list_volunteers(db: Session, sort: str = "newest", active: Optional[bool] = None) -> list[Volunteer]:
    """Volunteers ordered by join date; optionally only active or inactive ones."""
    if sort not in SORT_ORDERS:
        raise ValidationError(f"sort must be one of: {', '.join(SORT_ORDERS)}")
    query = db.query(Volunteer)
    if active is not None:
        query = query.filter(Volunteer.is_active.is_(active))
    order = Volunteer.joined_date.desc() if sort == "newest" else Volunteer.joined_date.asc()
    return query.order_by(order).all()


def update_volunteer(db: Session, volunteer_id: str, updates: dict[str, Any]) -> Volunteer:
    volunteer = get_volunteer(db, volunteer_id)
    for field in ("name", "comment"):
        if field in updates:
            updates[field] = _require_text(updates[field], field)
    if updates.get("email"):
        updates["email"] = updates["email"].lower()
        if _email_taken(db, updates["email"], exclude_id=volunteer_id):
            raise ConflictError(f"Volunteer with email {updates['email']} already exists")
    for field, value in updates.items():
        setattr(volunteer, field, value)
    db.commit()
    db.refresh(volunteer)
    logger.info("Updated volunteer %s", volunteer_id)
    return volunteer


def set_active(db: Session, volunteer_id: str, is_active: bool) -> Volunteer:
    volunteer = get_volunteer(db, volunteer_id)
    volunteer.is_active = is_active
    db.commit()
    db.refresh(volunteer)
    logger.info("Volunteer %s is now %s", volunteer_id, "active" if is_active else "inactive")
    return volunteer


def delete_volunteer(db: Session, volunteer_id: str) -> None:
    """Delete a volunteer with their work assignments and attendance."""
    volunteer = get_volunteer(db, volunteer_id)
    db.delete(volunteer)
    db.commit()
    logger.info("Deleted volunteer %s", volunteer_id)


# ---------------------------------------------------------------------------
# Work assignments
# ---------------------------------------------------------------------------
def assign_work(
    db: Session,
    volunteer_id: str,
    event_id: str,
    task_name: str,
    task_status: WorkStatus | str | None = None,
) -> VolunteerWork:
    task_name = _require_text(task_name, "task_name")
    try:
        status = WorkStatus(task_status) if task_status else WorkStatus.assigned
    except ValueError:
        raise ValidationError(
            f"task_status must be one of: {', '.join(s.value for s in WorkStatus)}"
        )
    if not db.get(Volunteer, volunteer_id):
        raise NotFoundError(f"Volunteer {volunteer_id} not found")
    if not db.get(Event, event_id):
        raise NotFoundError(f"Event {event_id} not found")

    work = VolunteerWork(volunteer_id=volunteer_id, event_id=event_id, task_name=task_name, task_status=status)
    db.add(work)
    db.commit()
    db.refresh(work)
    logger.info("Assigned '%s' at event %s to volunteer %s", task_name, event_id, volunteer_id)
    return work


def work_history(db: Session, volunteer_id: str) -> list[VolunteerWork]:
    """All assignments of a volunteer with their event, newest first."""
    get_volunteer(db, volunteer_id)
    return (
        db.query(VolunteerWork)
        .options(joinedload(VolunteerWork.event))
        .filter(VolunteerWork.volunteer_id == volunteer_id)
        .order_by(VolunteerWork.created_at.desc())
        .all()
    )


def update_work_status(db: Session, work_id: str, task_status: WorkStatus | str) -> VolunteerWork:
    try:
        status = WorkStatus(task_status)
    except ValueError:
        raise ValidationError(
            f"task_status must be one of: {', '.join(s.value for s in WorkStatus)}"
        )
    work = db.get(VolunteerWork, work_id)
    if not work:
        raise NotFoundError("Work assignment not found")
    work.task_status = status
    db.commit()
    db.refresh(work)
    return work


def delete_work(db: Session, work_id: str) -> None:
    work = db.get(VolunteerWork, work_id)
    if not work:
        raise NotFoundError("Work assignment not found")
    db.delete(work)
    db.commit()
    logger.info("Deleted work assignment %s", work_id)


def delete_event_work(db: Session, volunteer_id: str, event_id: str) -> int:
    """Delete every assignment a volunteer has at one event. Returns how many were removed."""
    get_volunteer(db, volunteer_id)
    deleted = (
        db.query(VolunteerWork)
        .filter(VolunteerWork.volunteer_id == volunteer_id, VolunteerWork.event_id == event_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    logger.info("Deleted %d assignments of volunteer %s at event %s", deleted, volunteer_id, event_id)
    return deleted
