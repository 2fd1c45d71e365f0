"""BlocklistEntry ORM model — at most one entry per participant."""
import enum
import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Text, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base


class BlocklistReason(str, enum.Enum):
    manual = "manual"
    auto_no_show = "auto_no_show"


# Note of a manual entry that keeps an over-threshold participant unblocked
UNBLOCK_OVERRIDE_NOTE = "manually_unblocked"


class BlocklistEntry(Base):
    __tablename__ = "blocklist"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    participant_id = Column(
        String(36), ForeignKey("participants.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    reason = Column(SAEnum(BlocklistReason, name="blocklist_reason", native_enum=False, length=20), nullable=False)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    participant = relationship("Participant", back_populates="blocklist_entry")

    @property
    def is_unblock_override(self) -> bool:
        return self.reason == BlocklistReason.manual and self.note == UNBLOCK_OVERRIDE_NOTE
