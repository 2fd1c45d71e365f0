"""Blocklist service — no-show reconciliation and manual entries.

reconcile() is the only code path that creates or removes
auto_no_show entries:

1. count no-shows per participant (one grouped query)
2. should_block = participants at or over the threshold
3. load every blocklist entry (one query)
4. to_add = should_block - auto - manual, to_remove = auto - should_block
5. apply each participant's change in its own commit

Manual entries are never read as candidates for removal and are never
overwritten. That includes unblock overrides: manual entries noted
UNBLOCK_OVERRIDE_NOTE, left behind when an admin removes someone who is
still over the threshold. They keep the participant unblocked and are
hidden from listings and counts. Failures while applying one
participant are logged, rolled back and reported; the rest of the diff
still applies.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from app.database import insert_if_absent
from app.errors import NotFoundError, StoreFailure, ValidationError
from app.models.blocklist import UNBLOCK_OVERRIDE_NOTE, BlocklistEntry, BlocklistReason
from app.models.participant import Participant
from app.services import settings_service
from app.services.attendance_service import count_no_shows, count_no_shows_by_participant

logger = logging.getLogger(__name__)


@dataclass
class ReconcileError:
    participant_id: str
    action: str  # "add" or "remove"
    message: str


@dataclass
class ReconcileResult:
    added: int = 0
    removed: int = 0
    errors: list[ReconcileError] = field(default_factory=list)
    skipped: bool = False


def _auto_reason_text(no_shows: int, threshold: int) -> str:
    return f"Auto-blocked: {no_shows} no-shows (threshold {threshold})"


def _block_participant(db: Session, participant_id: str, no_shows: int, threshold: int) -> bool:
    """Insert an auto entry if the participant has none. Returns True if inserted."""
    inserted = insert_if_absent(
        db,
        BlocklistEntry,
        {"participant_id": participant_id, "reason": BlocklistReason.auto_no_show},
        ["participant_id"],
    )
    if inserted:
        (
            db.query(Participant)
            .filter(Participant.id == participant_id)
            .update(
                {"is_blocklisted": True, "blocklist_reason": _auto_reason_text(no_shows, threshold)},
                synchronize_session=False,
            )
        )
    db.commit()
    return inserted


def _release_participant(db: Session, participant_id: str) -> bool:
    """Delete the participant's auto entry. Returns True if one was deleted."""
    deleted = (
        db.query(BlocklistEntry)
        .filter(
            BlocklistEntry.participant_id == participant_id,
            BlocklistEntry.reason == BlocklistReason.auto_no_show,
        )
        .delete(synchronize_session=False)
    )
    if deleted:
        (
            db.query(Participant)
            .filter(Participant.id == participant_id)
            .update({"is_blocklisted": False, "blocklist_reason": None}, synchronize_session=False)
        )
    db.commit()
    return deleted > 0


def reconcile(db: Session, threshold: int) -> ReconcileResult:
    """Bring auto_no_show entries in line with current no-show counts."""
    if threshold is None or threshold < 1:
        raise ValidationError("threshold must be an integer >= 1")

    no_shows = count_no_shows_by_participant(db)
    try:
        entries = db.query(BlocklistEntry.participant_id, BlocklistEntry.reason).all()
    except SQLAlchemyError as exc:
        raise StoreFailure(f"Failed to fetch blocklist: {exc}") from exc

    auto_blocked = {pid for pid, reason in entries if reason == BlocklistReason.auto_no_show}
    manual_blocked = {pid for pid, reason in entries if reason == BlocklistReason.manual}
    should_block = {pid for pid, count in no_shows.items() if count >= threshold}

    to_add = should_block - auto_blocked - manual_blocked
    to_remove = auto_blocked - should_block

    result = ReconcileResult()
    for participant_id in sorted(to_add):
        try:
            if _block_participant(db, participant_id, no_shows[participant_id], threshold):
                result.added += 1
        except SQLAlchemyError as exc:
            db.rollback()
            logger.warning("Auto-block failed for participant %s: %s", participant_id, exc)
            result.errors.append(ReconcileError(participant_id, "add", str(exc)))

    for participant_id in sorted(to_remove):
        try:
            if _release_participant(db, participant_id):
                result.removed += 1
        except SQLAlchemyError as exc:
            db.rollback()
            logger.warning("Auto-unblock failed for participant %s: %s", participant_id, exc)
            result.errors.append(ReconcileError(participant_id, "remove", str(exc)))

    logger.info(
        "Blocklist reconciled (threshold %d): %d added, %d removed, %d failed",
        threshold, result.added, result.removed, len(result.errors),
    )
    return result


def run_auto_reconcile(db: Session) -> ReconcileResult:
    """Reconcile with the stored threshold; skipped while auto-block is disabled."""
    current = settings_service.get_settings(db)
    if not current.auto_block_enabled:
        logger.info("Auto-block disabled, skipping blocklist reconcile")
        return ReconcileResult(skipped=True)
    return reconcile(db, current.no_show_threshold)


def blocking_filter():
    """Entries that block their participant: everything except unblock overrides."""
    return or_(BlocklistEntry.note.is_(None), BlocklistEntry.note != UNBLOCK_OVERRIDE_NOTE)


def add_manual_entry(db: Session, participant_id: str, note: Optional[str]) -> BlocklistEntry:
    """Manually blocklist a participant. An existing auto entry or override becomes manual."""
    if not note or not note.strip():
        raise ValidationError("Reason is required for manual blocklist")
    note = note.strip()
    if note == UNBLOCK_OVERRIDE_NOTE:
        raise ValidationError(f"'{UNBLOCK_OVERRIDE_NOTE}' is reserved and cannot be used as a reason")
    participant = db.get(Participant, participant_id)
    if not participant:
        raise NotFoundError("Participant not found")

    inserted = insert_if_absent(
        db,
        BlocklistEntry,
        {"participant_id": participant_id, "reason": BlocklistReason.manual, "note": note},
        ["participant_id"],
    )
    if not inserted:
        (
            db.query(BlocklistEntry)
            .filter(BlocklistEntry.participant_id == participant_id)
            .update({"reason": BlocklistReason.manual, "note": note}, synchronize_session=False)
        )
    participant.is_blocklisted = True
    participant.blocklist_reason = note
    db.commit()
    logger.info("Participant %s manually blocklisted: %s", participant_id, note)
    return db.query(BlocklistEntry).filter(BlocklistEntry.participant_id == participant_id).one()


def remove_entry(db: Session, participant_id: str) -> bool:
    """Take a participant off the blocklist and clear the flag.

    If their no-show count still meets the stored threshold, the entry is
    turned into an unblock override so later reconciles leave them alone;
    otherwise it is deleted. Returns True when an override was stored.
    """
    participant = db.get(Participant, participant_id)
    if not participant:
        raise NotFoundError("Participant not found")
    entry = db.query(BlocklistEntry).filter(BlocklistEntry.participant_id == participant_id).first()
    if entry is None or entry.is_unblock_override:
        raise NotFoundError("Participant is not on the blocklist")

    no_shows = count_no_shows(db, participant_id)
    threshold = settings_service.get_settings(db).no_show_threshold
    overridden = no_shows >= threshold
    if overridden:
        entry.reason = BlocklistReason.manual
        entry.note = UNBLOCK_OVERRIDE_NOTE
    else:
        db.delete(entry)
    participant.is_blocklisted = False
    participant.blocklist_reason = None
    db.commit()
    if overridden:
        logger.info(
            "Participant %s unblocked with override (%d no-shows, threshold %d)",
            participant_id, no_shows, threshold,
        )
    else:
        logger.info("Participant %s removed from blocklist", participant_id)
    return overridden


def list_entries(db: Session) -> list[dict[str, Any]]:
    """Blocklist rows with participant details and current no-show counts."""
    entries = (
        db.query(BlocklistEntry)
        .options(joinedload(BlocklistEntry.participant))
        .filter(blocking_filter())
        .order_by(BlocklistEntry.created_at.desc())
        .all()
    )
    no_shows = count_no_shows_by_participant(db)
    return [
        {
            "id": e.id,
            "participant_id": e.participant_id,
            "reason": e.reason.value,
            "note": e.note,
            "created_at": e.created_at,
            "no_show_count": no_shows.get(e.participant_id, 0),
            "name": e.participant.name if e.participant else None,
            "email": e.participant.email if e.participant else None,
        }
        for e in entries
    ]


def blocklist_count(db: Session) -> int:
    return db.query(func.count(BlocklistEntry.id)).filter(blocking_filter()).scalar() or 0


def blocklist_stats(db: Session) -> dict[str, int]:
    counts = dict(
        db.query(BlocklistEntry.reason, func.count(BlocklistEntry.id))
        .filter(blocking_filter())
        .group_by(BlocklistEntry.reason)
        .all()
    )
    auto = counts.get(BlocklistReason.auto_no_show, 0)
    manual = counts.get(BlocklistReason.manual, 0)
    return {"total": auto + manual, "auto_blocked": auto, "manually_blocked": manual}
