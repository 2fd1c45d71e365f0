"""Attendance ORM model — one row per (event, participant)."""
import enum
import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base


class AttendanceStatus(str, enum.Enum):
    attended = "attended"
    no_show = "no_show"


# Spellings accepted on input, including the legacy ones
_STATUS_ALIASES = {
    "attended": AttendanceStatus.attended,
    "present": AttendanceStatus.attended,
    "yes": AttendanceStatus.attended,
    "no_show": AttendanceStatus.no_show,
    "no-show": AttendanceStatus.no_show,
    "not_attended": AttendanceStatus.no_show,
    "absent": AttendanceStatus.no_show,
    "no": AttendanceStatus.no_show,
}


def normalize_status(raw: str | None) -> AttendanceStatus | None:
    """Map user or legacy status text to AttendanceStatus.

    Missing/blank input means no-show. Returns None for unknown text.
    """
    if raw is None or not str(raw).strip():
        return AttendanceStatus.no_show
    return _STATUS_ALIASES.get(str(raw).strip().lower())


class Attendance(Base):
    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("event_id", "participant_id", name="uq_attendance_event_participant"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    participant_id = Column(
        String(36), ForeignKey("participants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # NULL is a legacy no-show
    status = Column(SAEnum(AttendanceStatus, name="attendance_status", native_enum=False, length=20), nullable=True)
    marked_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    event = relationship("Event", back_populates="attendance")
    participant = relationship("Participant", back_populates="attendance")
