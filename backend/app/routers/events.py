"""Event API routes."""
import logging
from dataclasses import asdict
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_undo_buffer
from app.models.event import Event
from app.schemas.attendance import DeleteResponse
from app.schemas.event import EventCreate, EventUpdate, EventOut
from app.services import blocklist_service
from app.services.undo_buffer import DeleteUndoBuffer

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(payload: EventCreate, db: Session = Depends(get_db)):
    event = Event(**payload.model_dump())
    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info("Created event '%s' (%s)", event.name, event.id)
    return event


@router.get("/", response_model=list[EventOut])
def list_events(db: Session = Depends(get_db)):
    """List events, most recent first."""
    return db.query(Event).order_by(Event.date.desc(), Event.created_at.desc()).all()


@router.get("/{event_id}", response_model=EventOut)
def get_event(event_id: str, db: Session = Depends(get_db)):
    event = db.query(Event).filter(Event.id == event_id).first()
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.patch("/{event_id}", response_model=EventOut)
def update_event(event_id: str, payload: EventUpdate, db: Session = Depends(get_db)):
    """Partial update of name, date or location."""
    event = db.query(Event).filter(Event.id == event_id).first()
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(event, field, value)
    db.commit()
    db.refresh(event)
    logger.info("Updated event %s", event_id)
    return event


@router.delete("/{event_id}", response_model=DeleteResponse)
def delete_event(
    event_id: str,
    db: Session = Depends(get_db),
    buffer: DeleteUndoBuffer = Depends(get_undo_buffer),
):
    """Delete an event and its attendance; no-show counts may drop, so reconcile."""
    event = db.query(Event).filter(Event.id == event_id).first()
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    db.delete(event)
    db.commit()
    buffer.discard(event_id)
    logger.info("Deleted event %s", event_id)
    result = blocklist_service.run_auto_reconcile(db)
    return {"message": "Event deleted", "blocklist": asdict(result)}
