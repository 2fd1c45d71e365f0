"""Participant API routes."""
import logging
from dataclasses import asdict
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.participant import Participant
from app.schemas.attendance import DeleteResponse, ParticipantBatchImportResponse
from app.schemas.participant import (
    ParticipantBatchImport,
    ParticipantCount,
    ParticipantCreate,
    ParticipantOut,
    ParticipantUpdate,
)
from app.services import blocklist_service, participant_service

logger = logging.getLogger(__name__)
router = APIRouter()


def _email_taken(db: Session, email: str, exclude_id: str | None = None) -> bool:
    query = db.query(Participant).filter(func.lower(Participant.email) == email.lower())
    if exclude_id:
        query = query.filter(Participant.id != exclude_id)
    return query.first() is not None


@router.post("/", response_model=ParticipantOut, status_code=status.HTTP_201_CREATED)
def create_participant(payload: ParticipantCreate, db: Session = Depends(get_db)):
    if _email_taken(db, payload.email):
        raise HTTPException(status_code=409, detail=f"Participant with email {payload.email} already exists")
    participant = Participant(**payload.model_dump(), is_blocklisted=False)
    db.add(participant)
    db.commit()
    db.refresh(participant)
    logger.info("Created participant %s (%s)", participant.id, participant.email)
    return participant


@router.get("/", response_model=list[ParticipantOut])
def list_participants(include_blocklisted: bool = Query(False), db: Session = Depends(get_db)):
    """List participants, hiding blocklisted ones unless asked."""
    query = db.query(Participant)
    if not include_blocklisted:
        query = query.filter(Participant.is_blocklisted.is_(False))
    return query.order_by(Participant.created_at.desc()).all()


@router.post("/bulk-import-batch", response_model=ParticipantBatchImportResponse, status_code=status.HTTP_201_CREATED)
def bulk_import_batch(payload: ParticipantBatchImport, db: Session = Depends(get_db)):
    """Register participants for events; rows already registered for their event are counted as duplicates."""
    outcome = participant_service.bulk_create_with_event_dedup(db, [p.model_dump() for p in payload.participants])
    result = blocklist_service.run_auto_reconcile(db)
    return {
        "imported": outcome["imported"],
        "duplicates": outcome["duplicates"],
        "data": outcome["created"],
        "blocklist": asdict(result),
    }


@router.get("/stats/active", response_model=ParticipantCount)
def active_count(db: Session = Depends(get_db)):
    return {"count": participant_service.count_participants(db, blocklisted=False)}


@router.get("/stats/blocklisted", response_model=ParticipantCount)
def blocklisted_count(db: Session = Depends(get_db)):
    return {"count": participant_service.count_participants(db, blocklisted=True)}


@router.get("/{participant_id}", response_model=ParticipantOut)
def get_participant(participant_id: str, db: Session = Depends(get_db)):
    participant = db.query(Participant).filter(Participant.id == participant_id).first()
    if not participant:
        raise HTTPException(status_code=404, detail="Participant not found")
    return participant


@router.patch("/{participant_id}", response_model=ParticipantOut)
def update_participant(participant_id: str, payload: ParticipantUpdate, db: Session = Depends(get_db)):
    """Update contact details. Blocklist state is changed through /api/blocklist only."""
    participant = db.query(Participant).filter(Participant.id == participant_id).first()
    if not participant:
        raise HTTPException(status_code=404, detail="Participant not found")
    updates = payload.model_dump(exclude_unset=True)
    if "email" in updates and _email_taken(db, updates["email"], exclude_id=participant_id):
        raise HTTPException(status_code=409, detail=f"Participant with email {updates['email']} already exists")
    for field, value in updates.items():
        setattr(participant, field, value)
    db.commit()
    db.refresh(participant)
    logger.info("Updated participant %s", participant_id)
    return participant


@router.delete("/{participant_id}", response_model=DeleteResponse)
def delete_participant(participant_id: str, db: Session = Depends(get_db)):
    """Delete a participant with their attendance and blocklist entry."""
    participant = db.query(Participant).filter(Participant.id == participant_id).first()
    if not participant:
        raise HTTPException(status_code=404, detail="Participant not found")
    db.delete(participant)
    db.commit()
    logger.info("Deleted participant %s", participant_id)
    result = blocklist_service.run_auto_reconcile(db)
    return {"message": "Participant deleted", "blocklist": asdict(result)}
