"""Auto-block settings — stored row with configuration defaults."""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.config import settings as app_config
from app.errors import ValidationError
from app.models.app_settings import AppSettings

logger = logging.getLogger(__name__)

SETTINGS_ROW_ID = 1


def get_settings(db: Session) -> AppSettings:
    """Return the stored settings row, or an unsaved one carrying config defaults."""
    row = db.get(AppSettings, SETTINGS_ROW_ID)
    if row is None:
        return AppSettings(
            id=SETTINGS_ROW_ID,
            no_show_threshold=app_config.NO_SHOW_THRESHOLD,
            auto_block_enabled=app_config.AUTO_BLOCK_ENABLED,
        )
    return row


def update_settings(
    db: Session,
    no_show_threshold: Optional[int] = None,
    auto_block_enabled: Optional[bool] = None,
) -> AppSettings:
    if no_show_threshold is not None and no_show_threshold < 1:
        raise ValidationError("no_show_threshold must be at least 1")

    row = db.get(AppSettings, SETTINGS_ROW_ID)
    if row is None:
        row = get_settings(db)
        db.add(row)
    if no_show_threshold is not None:
        row.no_show_threshold = no_show_threshold
    if auto_block_enabled is not None:
        row.auto_block_enabled = auto_block_enabled
    db.commit()
    db.refresh(row)
    logger.info(
        "Settings updated: no_show_threshold=%d auto_block_enabled=%s",
        row.no_show_threshold,
        row.auto_block_enabled,
    )
    return row
