"""Volunteer API routes — records, work assignments and attendance."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.volunteer import (
    VolunteerAttendanceMark,
    VolunteerAttendanceOut,
    VolunteerAttendancePage,
    VolunteerAttendanceStats,
    VolunteerCreate,
    VolunteerOut,
    VolunteerStatusUpdate,
    VolunteerUpdate,
    WorkAssignmentCreate,
    WorkAssignmentOut,
    WorkHistoryOut,
    WorkStatusUpdate,
)
from app.services import volunteer_attendance_service, volunteer_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=VolunteerOut, status_code=status.HTTP_201_CREATED)
def create_volunteer(payload: VolunteerCreate, db: Session = Depends(get_db)):
    return volunteer_service.create_volunteer(db, **payload.model_dump())


@router.get("/", response_model=list[VolunteerOut])
def list_volunteers(
    sort: str = Query("newest", description="newest or oldest, by join date"),
    active: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
):
    return volunteer_service.list_volunteers(db, sort=sort, active=active)


# Work assignment routes
@router.post("/work-assignments", response_model=WorkAssignmentOut, status_code=status.HTTP_201_CREATED)
def assign_work(payload: WorkAssignmentCreate, db: Session = Depends(get_db)):
    return volunteer_service.assign_work(
        db,
        volunteer_id=payload.volunteer_id,
        event_id=payload.event_id,
        task_name=payload.task_name,
        task_status=payload.task_status,
    )


@router.patch("/work-assignments/{work_id}", response_model=WorkAssignmentOut)
def update_work_status(work_id: str, payload: WorkStatusUpdate, db: Session = Depends(get_db)):
    return volunteer_service.update_work_status(db, work_id, payload.task_status)


@router.delete("/work-assignments/{work_id}")
def delete_work(work_id: str, db: Session = Depends(get_db)):
    volunteer_service.delete_work(db, work_id)
    return {"message": "Work assignment deleted"}


@router.get("/{volunteer_id}", response_model=VolunteerOut)
def get_volunteer(volunteer_id: str, db: Session = Depends(get_db)):
    return volunteer_service.get_volunteer(db, volunteer_id)


@router.patch("/{volunteer_id}", response_model=VolunteerOut)
def update_volunteer(volunteer_id: str, payload: VolunteerUpdate, db: Session = Depends(get_db)):
    return volunteer_service.update_volunteer(db, volunteer_id, payload.model_dump(exclude_unset=True))


@router.patch("/{volunteer_id}/toggle-status", response_model=VolunteerOut)
def toggle_status(volunteer_id: str, payload: VolunteerStatusUpdate, db: Session = Depends(get_db)):
    return volunteer_service.set_active(db, volunteer_id, payload.is_active)


@router.delete("/{volunteer_id}")
def delete_volunteer(volunteer_id: str, db: Session = Depends(get_db)):
    volunteer_service.delete_volunteer(db, volunteer_id)
    return {"message": "Volunteer deleted"}


@router.get("/{volunteer_id}/work-history", response_model=list[WorkHistoryOut])
def work_history(volunteer_id: str, db: Session = Depends(get_db)):
    return volunteer_service.work_history(db, volunteer_id)


@router.delete("/{volunteer_id}/work-history/{event_id}")
def delete_event_work(volunteer_id: str, event_id: str, db: Session = Depends(get_db)):
    deleted = volunteer_service.delete_event_work(db, volunteer_id, event_id)
    return {"message": "Work assignments deleted", "deleted": deleted}


# Attendance routes
@router.post("/{volunteer_id}/attendance", response_model=VolunteerAttendanceOut, status_code=status.HTTP_201_CREATED)
def record_attendance(volunteer_id: str, payload: VolunteerAttendanceMark, db: Session = Depends(get_db)):
    return volunteer_attendance_service.record_attendance(db, volunteer_id, payload.event_id, payload.status)


@router.get("/{volunteer_id}/attendance", response_model=VolunteerAttendancePage)
def attendance_history(
    volunteer_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return volunteer_attendance_service.attendance_history(db, volunteer_id, page=page, limit=limit)


@router.get("/{volunteer_id}/attendance/recent", response_model=list[VolunteerAttendanceOut])
def recent_attendance(volunteer_id: str, limit: int = Query(5, ge=1, le=50), db: Session = Depends(get_db)):
    return volunteer_attendance_service.recent_attendance(db, volunteer_id, limit=limit)


@router.get("/{volunteer_id}/attendance/stats", response_model=VolunteerAttendanceStats)
def attendance_stats(volunteer_id: str, db: Session = Depends(get_db)):
    return volunteer_attendance_service.attendance_stats(db, volunteer_id)
