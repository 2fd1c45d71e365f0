"""In-memory, per-event, single-use backup of the last bulk delete.

One slot per event id. A new bulk delete for the same event replaces the
slot (last delete wins), which also invalidates the previous token. The
buffer lives only as long as the process; nothing is persisted.
"""
import enum
import logging
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from app.errors import NoUndoAvailable

logger = logging.getLogger(__name__)


class DeleteKind(str, enum.Enum):
    participant = "participant"
    attendance = "attendance"


@dataclass(frozen=True)
class ParticipantSnapshot:
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    is_blocklisted: bool = False
    blocklist_reason: Optional[str] = None
    manually_blocklisted: bool = False
    manual_note: Optional[str] = None
    unblock_override: bool = False


@dataclass(frozen=True)
class AttendanceSnapshot:
    id: str
    event_id: str
    participant_id: str
    status: Optional[str]
    marked_at: Optional[datetime] = None
    name: Optional[str] = None
    email: Optional[str] = None


@dataclass
class DeleteBackup:
    kind: DeleteKind
    token: str
    created_at: datetime
    participants: tuple[ParticipantSnapshot, ...] = ()
    attendance: tuple[AttendanceSnapshot, ...] = ()
    used: bool = False


class DeleteUndoBuffer:
    """Holds at most one backup per event and hands each token out once."""

    def __init__(self, token_bytes: int = 16):
        self._token_bytes = token_bytes
        self._backups: dict[str, DeleteBackup] = {}
        self._lock = threading.Lock()

    def store(
        self,
        event_id: str,
        kind: DeleteKind,
        participants: list[ParticipantSnapshot] | tuple = (),
        attendance: list[AttendanceSnapshot] | tuple = (),
    ) -> DeleteBackup:
        backup = DeleteBackup(
            kind=DeleteKind(kind),
            token=secrets.token_hex(self._token_bytes),
            created_at=datetime.now(timezone.utc),
            participants=tuple(participants),
            attendance=tuple(attendance),
        )
        with self._lock:
            replaced = self._backups.get(event_id)
            self._backups[event_id] = backup
        if replaced is not None and not replaced.used:
            logger.info("Pending %s backup for event %s replaced by a newer delete", replaced.kind.value, event_id)
        logger.info(
            "Stored %s backup for event %s (%d participants, %d attendance rows)",
            backup.kind.value, event_id, len(backup.participants), len(backup.attendance),
        )
        return backup

    def claim(self, event_id: str, kind: DeleteKind | str, token: str) -> DeleteBackup:
        """Validate the token and consume the backup; raises NoUndoAvailable on any mismatch."""
        try:
            kind = DeleteKind(kind)
        except ValueError:
            raise NoUndoAvailable(f"Unknown delete type: {kind}")
        with self._lock:
            backup = self._backups.get(event_id)
            if (
                backup is None
                or backup.used
                or backup.kind != kind
                or not token
                or not secrets.compare_digest(backup.token, token)
            ):
                raise NoUndoAvailable()
            backup.used = True
        logger.info("Undo token for event %s (%s) consumed", event_id, kind.value)
        return backup

    def peek(self, event_id: str) -> Optional[DeleteBackup]:
        return self._backups.get(event_id)

    def discard(self, event_id: str) -> None:
        with self._lock:
            self._backups.pop(event_id, None)

    def __len__(self) -> int:
        return len(self._backups)
