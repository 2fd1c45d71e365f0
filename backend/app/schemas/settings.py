"""Pydantic schemas for auto-block settings."""
from typing import Optional
from pydantic import BaseModel, Field


class SettingsOut(BaseModel):
    no_show_threshold: int
    auto_block_enabled: bool

    model_config = {"from_attributes": True}


class SettingsUpdate(BaseModel):
    no_show_threshold: Optional[int] = Field(None, ge=1)
    auto_block_enabled: Optional[bool] = None
