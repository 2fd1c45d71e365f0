"""Engine, session factory and the request-scoped session dependency."""
from typing import Any, Generator

from sqlalchemy import create_engine
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.config import settings

_connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(settings.DATABASE_URL, connect_args=_connect_args, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a session that is closed after the request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def insert_if_absent(db: Session, model: Any, values: dict[str, Any], conflict_columns: list[str]) -> bool:
    """INSERT ... ON CONFLICT DO NOTHING against a unique constraint.

    Returns True when a row was written, False when one already existed.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = pg_insert(model.__table__)
    elif dialect == "sqlite":
        stmt = sqlite_insert(model.__table__)
    else:
        raise ValueError(f"insert_if_absent is not supported on {dialect}")
    stmt = stmt.values(**values).on_conflict_do_nothing(index_elements=conflict_columns)
    result = db.execute(stmt)
    return (result.rowcount or 0) > 0
