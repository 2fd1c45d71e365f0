"""Pydantic schemas for the dashboard endpoints."""
from datetime import datetime
from pydantic import BaseModel

from app.schemas.attendance import AttendanceDetailOut
from app.schemas.blocklist import BlocklistStats


class DashboardSummary(BaseModel):
    events: int
    participants: int
    no_shows: int
    blocklisted: int
    last_updated: datetime


class NoShowBreakdown(BaseModel):
    total: int
    unique_participants: int
    by_participant: dict[str, int]


class DashboardStats(BaseModel):
    total: int
    attended: int
    no_shows: NoShowBreakdown
    blocklist: BlocklistStats


class DashboardOverview(BaseModel):
    summary: DashboardSummary
    recent_activity: list[AttendanceDetailOut]
    last_updated: datetime
