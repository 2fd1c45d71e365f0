"""Pytest fixtures — SQLite database recreated for every test."""
import os
from datetime import date

SQLITE_URL = "sqlite:///./test.db"
os.environ.setdefault("DATABASE_URL", SQLITE_URL)

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from app.database import Base, get_db
from app.dependencies import get_undo_buffer
from app.main import app
from app.services.undo_buffer import DeleteUndoBuffer

# Import all models so they register with Base.metadata
from app.models.event import Event                  # noqa: F401
from app.models.participant import Participant      # noqa: F401
from app.models.attendance import Attendance        # noqa: F401
from app.models.blocklist import BlocklistEntry     # noqa: F401
from app.models.app_settings import AppSettings     # noqa: F401
from app.models.volunteer import Volunteer, VolunteerWork, VolunteerAttendance  # noqa: F401


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    # Enable WAL mode for better concurrency
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Yield a database session, closed after the test."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def undo_buffer():
    return DeleteUndoBuffer()


@pytest.fixture(scope="function")
def client(db_engine, undo_buffer):
    """FastAPI TestClient with the database and undo buffer dependencies overridden."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_undo_buffer] = lambda: undo_buffer
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# API helpers
# ---------------------------------------------------------------------------
def create_test_event(client: TestClient, name: str = "Test Event", on: date = date(2026, 5, 1)) -> dict:
    """Helper — POST /api/events and return response JSON."""
    resp = client.post("/api/events/", json={"name": name, "date": on.isoformat()})
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_participant(client: TestClient, name: str = "Test Person", email: str | None = None) -> dict:
    """Helper — POST /api/participants and return response JSON."""
    email = email or f"{name.lower().replace(' ', '.')}@example.com"
    resp = client.post("/api/participants/", json={"name": name, "email": email})
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_volunteer(client: TestClient, name: str = "Test Volunteer", email: str | None = None) -> dict:
    """Helper — POST /api/volunteers and return response JSON."""
    email = email or f"{name.lower().replace(' ', '.')}@volunteers.example.com"
    resp = client.post("/api/volunteers/", json={"name": name, "email": email, "comment": "Helps with setup"})
    assert resp.status_code == 201, resp.text
    return resp.json()


def mark(client: TestClient, event_id: str, participant_id: str, status: str | None = "no_show") -> dict:
    """Helper — POST /api/attendance and return response JSON."""
    resp = client.post("/api/attendance/", json={
        "event_id": event_id,
        "participant_id": participant_id,
        "status": status,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


# ---------------------------------------------------------------------------
# Direct database helpers for service-level tests
# ---------------------------------------------------------------------------
def add_event(db, name: str = "Event", on: date = date(2026, 5, 1)) -> Event:
    ev = Event(name=name, date=on)
    db.add(ev)
    db.commit()
    return ev


def add_participant(db, name: str, email: str | None = None) -> Participant:
    p = Participant(name=name, email=email or f"{name.lower()}@example.com", is_blocklisted=False)
    db.add(p)
    db.commit()
    return p


def add_attendance(db, event_id: str, participant_id: str, status) -> Attendance:
    row = Attendance(event_id=event_id, participant_id=participant_id, status=status)
    db.add(row)
    db.commit()
    return row
