"""Event ORM model."""
import uuid
from sqlalchemy import Column, String, Date, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base


class Event(Base):
    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    date = Column(Date, nullable=False)
    location = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    attendance = relationship("Attendance", back_populates="event", cascade="all, delete-orphan")
    volunteer_work = relationship("VolunteerWork", back_populates="event", cascade="all, delete-orphan")
    volunteer_attendance = relationship("VolunteerAttendance", back_populates="event", cascade="all, delete-orphan")
