"""Pydantic schemas for Events."""
import datetime as dt
from typing import Optional
from pydantic import BaseModel


class EventCreate(BaseModel):
    name: str
    date: dt.date
    location: Optional[str] = None


class EventUpdate(BaseModel):
    name: Optional[str] = None
    date: Optional[dt.date] = None
    location: Optional[str] = None


class EventOut(BaseModel):
    id: str
    name: str
    date: dt.date
    location: Optional[str] = None
    created_at: dt.datetime

    model_config = {"from_attributes": True}
