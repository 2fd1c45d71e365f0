"""Participant ORM model."""
import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base


class Participant(Base):
    __tablename__ = "participants"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(150), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    phone = Column(String(50), nullable=True)
    is_blocklisted = Column(Boolean, nullable=False, default=False)
    blocklist_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    attendance = relationship("Attendance", back_populates="participant", cascade="all, delete-orphan")
    blocklist_entry = relationship(
        "BlocklistEntry", back_populates="participant", uselist=False, cascade="all, delete-orphan"
    )
