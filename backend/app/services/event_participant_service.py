"""Per-event participant/attendance management with bulk delete and undo.

delete_all() snapshots the event's attendance (joined with participants)
into the DeleteUndoBuffer and returns a one-time token. undo() replays
that snapshot once, matching participants by email then name and
skipping any (event, participant) pair that already has a row again.
Selected deletes have no undo.
"""
import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from app.database import insert_if_absent
from app.errors import NotFoundError, StoreFailure, ValidationError
from app.models.attendance import Attendance, AttendanceStatus
from app.models.blocklist import UNBLOCK_OVERRIDE_NOTE, BlocklistEntry, BlocklistReason
from app.models.event import Event
from app.models.participant import Participant
from app.services.undo_buffer import (
    AttendanceSnapshot,
    DeleteBackup,
    DeleteKind,
    DeleteUndoBuffer,
    ParticipantSnapshot,
)

logger = logging.getLogger(__name__)


@dataclass
class UndoResult:
    restored: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)


def _require_event(db: Session, event_id: str) -> Event:
    event = db.get(Event, event_id)
    if not event:
        raise NotFoundError("Event not found")
    return event


def list_event_participants(db: Session, event_id: str) -> list[Participant]:
    _require_event(db, event_id)
    participant_ids = select(Attendance.participant_id).where(Attendance.event_id == event_id)
    return (
        db.query(Participant)
        .filter(Participant.id.in_(participant_ids))
        .order_by(Participant.name)
        .all()
    )


def list_event_attendance(db: Session, event_id: str) -> list[Attendance]:
    _require_event(db, event_id)
    return (
        db.query(Attendance)
        .options(joinedload(Attendance.participant))
        .filter(Attendance.event_id == event_id)
        .order_by(Attendance.created_at.desc())
        .all()
    )


def _snapshot_event(db: Session, event_id: str) -> tuple[list[ParticipantSnapshot], list[AttendanceSnapshot]]:
    rows = (
        db.query(Attendance)
        .options(joinedload(Attendance.participant).joinedload(Participant.blocklist_entry))
        .filter(Attendance.event_id == event_id)
        .all()
    )
    participants: dict[str, ParticipantSnapshot] = {}
    attendance: list[AttendanceSnapshot] = []
    for row in rows:
        p = row.participant
        if p.id not in participants:
            entry = p.blocklist_entry
            override = entry is not None and entry.is_unblock_override
            manual = entry is not None and entry.reason == BlocklistReason.manual and not override
            participants[p.id] = ParticipantSnapshot(
                id=p.id,
                name=p.name,
                email=p.email,
                phone=p.phone,
                is_blocklisted=p.is_blocklisted,
                blocklist_reason=p.blocklist_reason,
                manually_blocklisted=manual,
                manual_note=entry.note if manual else None,
                unblock_override=override,
            )
        attendance.append(
            AttendanceSnapshot(
                id=row.id,
                event_id=row.event_id,
                participant_id=row.participant_id,
                status=row.status.value if row.status else None,
                marked_at=row.marked_at,
                name=p.name,
                email=p.email,
            )
        )
    return list(participants.values()), attendance


def _delete_participants(db: Session, participant_ids: list[str]) -> int:
    """Delete participants along with all their attendance and blocklist rows. Does not commit."""
    if not participant_ids:
        return 0
    db.query(Attendance).filter(Attendance.participant_id.in_(participant_ids)).delete(synchronize_session=False)
    db.query(BlocklistEntry).filter(BlocklistEntry.participant_id.in_(participant_ids)).delete(
        synchronize_session=False
    )
    return db.query(Participant).filter(Participant.id.in_(participant_ids)).delete(synchronize_session=False)


def delete_all(db: Session, buffer: DeleteUndoBuffer, event_id: str, kind: DeleteKind | str) -> dict[str, Any]:
    """Delete every participant or attendance row of an event, keeping an undo snapshot.

    For participants, only those with no attendance left in any other
    event are removed; the count returned is the number of distinct
    participants the event had.
    """
    kind = DeleteKind(kind)
    _require_event(db, event_id)
    participants, attendance = _snapshot_event(db, event_id)
    participant_ids = [p.id for p in participants]

    try:
        deleted_rows = (
            db.query(Attendance)
            .filter(Attendance.event_id == event_id)
            .delete(synchronize_session=False)
        )
        if kind == DeleteKind.participant:
            still_referenced = {
                row[0]
                for row in db.query(Attendance.participant_id)
                .filter(Attendance.participant_id.in_(participant_ids))
                .distinct()
                .all()
            }
            orphaned = [pid for pid in participant_ids if pid not in still_referenced]
            removed = _delete_participants(db, orphaned)
            logger.info(
                "Event %s: removed %d participants without other events, kept %d",
                event_id, removed, len(participant_ids) - removed,
            )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreFailure(f"Failed to delete {kind.value}s for event {event_id}: {exc}") from exc

    # Stored only after the delete commits so a failed delete keeps the previous backup
    backup = buffer.store(
        event_id,
        kind,
        participants=participants if kind == DeleteKind.participant else (),
        attendance=attendance,
    )
    deleted = len(participant_ids) if kind == DeleteKind.participant else deleted_rows
    logger.info("Deleted all %ss for event %s: %d", kind.value, event_id, deleted)
    return {"deleted": deleted, "undo_token": backup.token}


def delete_selected(db: Session, event_id: str, kind: DeleteKind | str, ids: list[str]) -> dict[str, int]:
    """Delete chosen participants (everywhere) or attendance rows of one event. No undo."""
    kind = DeleteKind(kind)
    if not ids:
        raise ValidationError(f"{kind.value}_ids must be a non-empty list")
    _require_event(db, event_id)

    try:
        if kind == DeleteKind.participant:
            in_event = [
                row[0]
                for row in db.query(Attendance.participant_id)
                .filter(Attendance.event_id == event_id, Attendance.participant_id.in_(ids))
                .distinct()
                .all()
            ]
            deleted = _delete_participants(db, in_event)
        else:
            deleted = (
                db.query(Attendance)
                .filter(Attendance.event_id == event_id, Attendance.id.in_(ids))
                .delete(synchronize_session=False)
            )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreFailure(f"Failed to delete selected {kind.value}s: {exc}") from exc

    logger.info("Deleted %d selected %ss for event %s", deleted, kind.value, event_id)
    return {"deleted": deleted}


def _find_participant(db: Session, email: Optional[str], name: Optional[str]) -> Optional[Participant]:
    if email:
        found = db.query(Participant).filter(func.lower(Participant.email) == email.lower()).first()
        if found:
            return found
    if name:
        return db.query(Participant).filter(Participant.name == name).order_by(Participant.created_at).first()
    return None


def _recreate_participant(db: Session, snap: ParticipantSnapshot) -> Participant:
    participant = Participant(
        name=snap.name,
        email=snap.email,
        phone=snap.phone,
        is_blocklisted=snap.manually_blocklisted,
        blocklist_reason=snap.manual_note if snap.manually_blocklisted else None,
    )
    db.add(participant)
    db.flush()
    # Auto entries are rebuilt by the reconciler from restored attendance
    if snap.manually_blocklisted or snap.unblock_override:
        note = snap.manual_note if snap.manually_blocklisted else UNBLOCK_OVERRIDE_NOTE
        insert_if_absent(
            db,
            BlocklistEntry,
            {"participant_id": participant.id, "reason": BlocklistReason.manual, "note": note},
            ["participant_id"],
        )
    return participant


def _ensure_participant_for_row(db: Session, snap: AttendanceSnapshot) -> str:
    if db.get(Participant, snap.participant_id):
        return snap.participant_id
    found = _find_participant(db, snap.email, snap.name)
    if found:
        return found.id
    participant = Participant(
        name=snap.name or "Unknown",
        email=snap.email or f"restored-{secrets.token_hex(6)}@restore.local",
        is_blocklisted=False,
    )
    db.add(participant)
    db.flush()
    return participant.id


def _restore_attendance_row(db: Session, event_id: str, participant_id: str, snap: AttendanceSnapshot) -> bool:
    return insert_if_absent(
        db,
        Attendance,
        {
            "event_id": event_id,
            "participant_id": participant_id,
            "status": AttendanceStatus(snap.status) if snap.status else None,
            "marked_at": snap.marked_at or datetime.now(timezone.utc),
        },
        ["event_id", "participant_id"],
    )


def _restore_participants(db: Session, event_id: str, backup: DeleteBackup, result: UndoResult) -> None:
    id_map: dict[str, str] = {}
    for snap in backup.participants:
        try:
            current = _find_participant(db, snap.email, snap.name) or _recreate_participant(db, snap)
            id_map[snap.id] = current.id
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.warning("Undo: could not restore participant %s (%s): %s", snap.id, snap.email, exc)
            result.errors.append({"participant_id": snap.id, "message": str(exc)})

    for row in backup.attendance:
        participant_id = id_map.get(row.participant_id)
        if participant_id is None:
            continue
        try:
            if _restore_attendance_row(db, event_id, participant_id, row):
                result.restored += 1
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.warning("Undo: could not restore attendance %s: %s", row.id, exc)
            result.errors.append({"attendance_id": row.id, "message": str(exc)})


def _restore_attendance(db: Session, event_id: str, backup: DeleteBackup, result: UndoResult) -> None:
    for row in backup.attendance:
        try:
            participant_id = _ensure_participant_for_row(db, row)
            if _restore_attendance_row(db, event_id, participant_id, row):
                result.restored += 1
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.warning("Undo: could not restore attendance %s: %s", row.id, exc)
            result.errors.append({"attendance_id": row.id, "message": str(exc)})


def undo(
    db: Session,
    buffer: DeleteUndoBuffer,
    event_id: str,
    kind: DeleteKind | str,
    token: str,
) -> UndoResult:
    """Replay the event's last bulk delete once.

    The token is consumed before any row is written, so the backup is
    spent even when every row turns out to exist already.
    """
    backup = buffer.claim(event_id, kind, token)
    result = UndoResult()
    if backup.kind == DeleteKind.participant:
        _restore_participants(db, event_id, backup, result)
    else:
        _restore_attendance(db, event_id, backup, result)

    logger.info(
        "Undo %s delete for event %s: %d restored (%d in snapshot), %d errors",
        backup.kind.value, event_id, result.restored, len(backup.attendance), len(result.errors),
    )
    return result
