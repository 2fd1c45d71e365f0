"""Root logger setup for the API process."""
import logging
import sys

from app.config import settings


def setup_logging(level: str | None = None) -> None:
    """Install a single stdout handler on the root logger."""
    root = logging.getLogger()
    root.setLevel((level or settings.LOG_LEVEL).upper())
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(handler)

    # Silence noisy libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
