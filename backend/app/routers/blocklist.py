"""Blocklist API routes — manual entries and the explicit sync."""
import logging
from dataclasses import asdict
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.attendance import ReconcileOut
from app.schemas.blocklist import (
    BlocklistAdd,
    BlocklistEntryOut,
    BlocklistItemOut,
    BlocklistStats,
    BlocklistSyncRequest,
)
from app.services import blocklist_service, settings_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=list[BlocklistItemOut])
def list_blocklist(db: Session = Depends(get_db)):
    return blocklist_service.list_entries(db)


@router.get("/count")
def blocklist_count(db: Session = Depends(get_db)):
    return {"count": blocklist_service.blocklist_count(db)}


@router.get("/stats", response_model=BlocklistStats)
def blocklist_stats(db: Session = Depends(get_db)):
    return blocklist_service.blocklist_stats(db)


@router.post("/", response_model=BlocklistEntryOut, status_code=status.HTTP_201_CREATED)
def add_to_blocklist(payload: BlocklistAdd, db: Session = Depends(get_db)):
    """Manually blocklist a participant; the reconciler never removes manual entries."""
    return blocklist_service.add_manual_entry(db, payload.participant_id, payload.reason)


@router.delete("/{participant_id}", status_code=status.HTTP_200_OK)
def remove_from_blocklist(participant_id: str, db: Session = Depends(get_db)):
    """Unblock a participant. Over-threshold participants keep an override so sync does not re-add them."""
    overridden = blocklist_service.remove_entry(db, participant_id)
    return {"message": "Participant removed from blocklist", "unblock_override": overridden}


@router.post("/sync", response_model=ReconcileOut)
def sync_blocklist(payload: BlocklistSyncRequest | None = None, db: Session = Depends(get_db)):
    """Run the no-show reconcile now, optionally with a one-off threshold."""
    threshold = payload.threshold if payload and payload.threshold is not None else None
    if threshold is None:
        threshold = settings_service.get_settings(db).no_show_threshold
    logger.info("Manual blocklist sync requested (threshold %d)", threshold)
    return asdict(blocklist_service.reconcile(db, threshold))
