"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from app.database import Base, engine
from app.errors import AttendanceAdminError
from app.logging_config import setup_logging
from app.services.undo_buffer import DeleteUndoBuffer

# Import routers
from app.routers import attendance, blocklist, dashboard, event_participants, events, participants
from app.routers import volunteer_attendance, volunteers
from app.routers import settings as settings_router

# Import all models so Base.metadata knows about them
from app.models.event import Event                  # noqa: F401
from app.models.participant import Participant      # noqa: F401
from app.models.attendance import Attendance        # noqa: F401
from app.models.blocklist import BlocklistEntry     # noqa: F401
from app.models.app_settings import AppSettings     # noqa: F401
from app.models.volunteer import Volunteer, VolunteerWork, VolunteerAttendance  # noqa: F401

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Event Attendance Admin",
    description="Events, participants, volunteers, attendance and a no-show blocklist with bulk delete/undo",
    version="0.1.0",
)

# One buffer per process, injected into routes via app.dependencies.get_undo_buffer
app.state.undo_buffer = DeleteUndoBuffer(token_bytes=settings.UNDO_TOKEN_BYTES)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(events.router, prefix="/api/events", tags=["Events"])
app.include_router(event_participants.router, prefix="/api/events", tags=["EventParticipants"])
app.include_router(participants.router, prefix="/api/participants", tags=["Participants"])
app.include_router(attendance.router, prefix="/api/attendance", tags=["Attendance"])
app.include_router(blocklist.router, prefix="/api/blocklist", tags=["Blocklist"])
app.include_router(settings_router.router, prefix="/api/settings", tags=["Settings"])
app.include_router(volunteers.router, prefix="/api/volunteers", tags=["Volunteers"])
app.include_router(volunteer_attendance.router, prefix="/api/volunteer-attendance", tags=["VolunteerAttendance"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"])


@app.exception_handler(AttendanceAdminError)
async def service_error_handler(request: Request, exc: AttendanceAdminError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.detail)
    else:
        logger.info("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.detail)
    return JSONResponse({"detail": exc.detail, "error": type(exc).__name__}, status_code=exc.status_code)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse({"detail": "Database error", "error": "StoreFailure"}, status_code=500)


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
