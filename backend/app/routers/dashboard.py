"""Dashboard API routes — read-only aggregates."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.dashboard import DashboardOverview, DashboardStats, DashboardSummary
from app.services import dashboard_service

router = APIRouter()


@router.get("/summary", response_model=DashboardSummary)
def summary(db: Session = Depends(get_db)):
    return dashboard_service.summary(db)


@router.get("/stats", response_model=DashboardStats)
def stats(db: Session = Depends(get_db)):
    return dashboard_service.detailed_stats(db)


@router.get("/overview", response_model=DashboardOverview)
def overview(recent: int = Query(10, ge=1, le=100), db: Session = Depends(get_db)):
    return dashboard_service.overview(db, recent=recent)
