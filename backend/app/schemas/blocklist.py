"""Pydantic schemas for the blocklist."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from app.models.blocklist import BlocklistReason


class BlocklistAdd(BaseModel):
    participant_id: str
    reason: str  # free-text note stored on the manual entry


class BlocklistEntryOut(BaseModel):
    id: str
    participant_id: str
    reason: BlocklistReason
    note: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class BlocklistItemOut(BlocklistEntryOut):
    name: Optional[str] = None
    email: Optional[str] = None
    no_show_count: int = 0


class BlocklistStats(BaseModel):
    total: int
    auto_blocked: int
    manually_blocked: int


class BlocklistSyncRequest(BaseModel):
    threshold: Optional[int] = None  # defaults to the stored no_show_threshold
