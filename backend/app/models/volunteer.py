"""Volunteer ORM models — volunteers, their work assignments and attendance."""
import enum
import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Text, UniqueConstraint, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base
from app.models.attendance import AttendanceStatus


class WorkStatus(str, enum.Enum):
    assigned = "assigned"
    in_progress = "in_progress"
    completed = "completed"


class Volunteer(Base):
    __tablename__ = "volunteers"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(150), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    comment = Column(Text, nullable=False)
    place = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    joined_date = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    work = relationship("VolunteerWork", back_populates="volunteer", cascade="all, delete-orphan")
    attendance = relationship("VolunteerAttendance", back_populates="volunteer", cascade="all, delete-orphan")


class VolunteerWork(Base):
    __tablename__ = "volunteer_work"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    volunteer_id = Column(String(36), ForeignKey("volunteers.id", ondelete="CASCADE"), nullable=False, index=True)
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    task_name = Column(String(255), nullable=False)
    task_status = Column(
        SAEnum(WorkStatus, name="work_status", native_enum=False, length=20),
        nullable=False,
        default=WorkStatus.assigned,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    volunteer = relationship("Volunteer", back_populates="work")
    event = relationship("Event", back_populates="volunteer_work")


class VolunteerAttendance(Base):
    """One row per (volunteer, event). Separate from participant attendance; never feeds the blocklist."""

    __tablename__ = "volunteer_attendance"
    __table_args__ = (
        UniqueConstraint("volunteer_id", "event_id", name="uq_volunteer_attendance_volunteer_event"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    volunteer_id = Column(String(36), ForeignKey("volunteers.id", ondelete="CASCADE"), nullable=False, index=True)
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(SAEnum(AttendanceStatus, name="attendance_status", native_enum=False, length=20), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    volunteer = relationship("Volunteer", back_populates="attendance")
    event = relationship("Event", back_populates="volunteer_attendance")
