"""Volunteer attendance import route."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.volunteer import VolunteerAttendanceImport, VolunteerAttendanceImportResponse
from app.services import volunteer_attendance_service

router = APIRouter()


@router.post("/bulk-import", response_model=VolunteerAttendanceImportResponse, status_code=status.HTTP_201_CREATED)
def bulk_import(payload: VolunteerAttendanceImport, db: Session = Depends(get_db)):
    """Import parsed volunteer attendance rows keyed by volunteer email."""
    return volunteer_attendance_service.bulk_import(db, [r.model_dump() for r in payload.records])
