"""Auto-block settings routes."""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.settings import SettingsOut, SettingsUpdate
from app.services import settings_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=SettingsOut)
def get_settings(db: Session = Depends(get_db)):
    return settings_service.get_settings(db)


@router.put("/", response_model=SettingsOut)
def update_settings(payload: SettingsUpdate, db: Session = Depends(get_db)):
    """Store a new threshold and/or toggle auto-blocking. Takes effect on the next reconcile."""
    return settings_service.update_settings(
        db,
        no_show_threshold=payload.no_show_threshold,
        auto_block_enabled=payload.auto_block_enabled,
    )
