"""Service-level tests for the no-show blocklist reconciler.

Covers:
- threshold is inclusive
- repeated runs are idempotent
- manual entries are never added, removed or overwritten
- auto entries are released when the count falls below the threshold
- legacy NULL status counts as a no-show
- one participant failing does not stop the rest
- triggered runs are skipped while auto-block is disabled
"""
import pytest
from sqlalchemy.exc import OperationalError

from app.errors import ValidationError
from app.models.attendance import Attendance, AttendanceStatus
from app.models.blocklist import BlocklistEntry, BlocklistReason
from app.models.participant import Participant
from app.services import blocklist_service, settings_service
from tests.conftest import add_attendance, add_event, add_participant


def _with_no_shows(db, name: str, count: int, attended: int = 0) -> Participant:
    """Create a participant with `count` no-shows and `attended` attended rows, one event each."""
    person = add_participant(db, name)
    for i in range(count):
        ev = add_event(db, f"{name} missed {i}")
        add_attendance(db, ev.id, person.id, AttendanceStatus.no_show)
    for i in range(attended):
        ev = add_event(db, f"{name} came {i}")
        add_attendance(db, ev.id, person.id, AttendanceStatus.attended)
    return person


def _entries(db) -> dict[str, BlocklistReason]:
    return {e.participant_id: e.reason for e in db.query(BlocklistEntry).all()}


class TestThreshold:
    def test_at_threshold_is_blocked(self, db):
        ann = _with_no_shows(db, "Ann", 2)
        bob = _with_no_shows(db, "Bob", 1, attended=3)

        result = blocklist_service.reconcile(db, threshold=2)

        assert result.added == 1
        assert result.removed == 0
        assert result.errors == []
        assert _entries(db) == {ann.id: BlocklistReason.auto_no_show}
        db.expire_all()
        assert db.get(Participant, ann.id).is_blocklisted is True
        assert db.get(Participant, ann.id).blocklist_reason == "Auto-blocked: 2 no-shows (threshold 2)"
        assert db.get(Participant, bob.id).is_blocklisted is False

    def test_threshold_below_one_rejected(self, db):
        with pytest.raises(ValidationError):
            blocklist_service.reconcile(db, threshold=0)

    def test_legacy_null_status_counts(self, db):
        carl = add_participant(db, "Carl")
        for i in range(2):
            ev = add_event(db, f"legacy {i}")
            add_attendance(db, ev.id, carl.id, None)

        result = blocklist_service.reconcile(db, threshold=2)

        assert result.added == 1
        assert _entries(db) == {carl.id: BlocklistReason.auto_no_show}

    def test_attended_rows_do_not_count(self, db):
        _with_no_shows(db, "Dee", 0, attended=5)
        result = blocklist_service.reconcile(db, threshold=1)
        assert result.added == 0
        assert _entries(db) == {}


class TestIdempotence:
    def test_second_run_changes_nothing(self, db):
        _with_no_shows(db, "Ann", 3)
        _with_no_shows(db, "Bob", 2)

        first = blocklist_service.reconcile(db, threshold=2)
        second = blocklist_service.reconcile(db, threshold=2)

        assert first.added == 2
        assert second.added == 0
        assert second.removed == 0
        assert db.query(BlocklistEntry).count() == 2

    def test_existing_entry_is_not_duplicated(self, db):
        ann = _with_no_shows(db, "Ann", 2)
        db.add(BlocklistEntry(participant_id=ann.id, reason=BlocklistReason.auto_no_show))
        db.commit()

        result = blocklist_service.reconcile(db, threshold=2)

        assert result.added == 0
        assert db.query(BlocklistEntry).filter(BlocklistEntry.participant_id == ann.id).count() == 1

    def test_block_participant_twice_inserts_once(self, db):
        ann = _with_no_shows(db, "Ann", 2)
        assert blocklist_service._block_participant(db, ann.id, 2, 2) is True
        assert blocklist_service._block_participant(db, ann.id, 2, 2) is False
        assert db.query(BlocklistEntry).count() == 1


class TestManualEntries:
    def test_manual_entry_is_left_alone(self, db):
        ann = _with_no_shows(db, "Ann", 0, attended=1)
        blocklist_service.add_manual_entry(db, ann.id, "Rude to staff")

        result = blocklist_service.reconcile(db, threshold=1)

        assert result.added == 0
        assert result.removed == 0
        assert _entries(db) == {ann.id: BlocklistReason.manual}

    def test_manual_over_threshold_not_counted_as_added(self, db):
        ann = _with_no_shows(db, "Ann", 4)
        blocklist_service.add_manual_entry(db, ann.id, "Known issue")

        result = blocklist_service.reconcile(db, threshold=2)

        assert result.added == 0
        entry = db.query(BlocklistEntry).one()
        assert entry.reason == BlocklistReason.manual
        assert entry.note == "Known issue"

    def test_manual_add_converts_auto_entry(self, db):
        ann = _with_no_shows(db, "Ann", 2)
        blocklist_service.reconcile(db, threshold=2)

        blocklist_service.add_manual_entry(db, ann.id, "Keep blocked")
        # dropping below the threshold must not release a manual entry
        db.query(Attendance).filter(Attendance.participant_id == ann.id).delete()
        db.commit()
        result = blocklist_service.reconcile(db, threshold=2)

        assert result.removed == 0
        assert _entries(db) == {ann.id: BlocklistReason.manual}

    def test_unblock_override_is_left_alone(self, db):
        ann = _with_no_shows(db, "Ann", 3)
        blocklist_service.reconcile(db, threshold=2)
        assert blocklist_service.remove_entry(db, ann.id) is True

        result = blocklist_service.reconcile(db, threshold=2)

        assert result.added == 0
        entry = db.query(BlocklistEntry).one()
        assert entry.is_unblock_override
        db.expire_all()
        assert db.get(Participant, ann.id).is_blocklisted is False
        assert blocklist_service.blocklist_count(db) == 0
        assert blocklist_service.list_entries(db) == []

    def test_remove_under_threshold_deletes_entry(self, db):
        ann = _with_no_shows(db, "Ann", 1)
        blocklist_service.add_manual_entry(db, ann.id, "Late payment")
        assert blocklist_service.remove_entry(db, ann.id) is False
        assert db.query(BlocklistEntry).count() == 0

    def test_manual_add_requires_note(self, db):
        ann = add_participant(db, "Ann")
        with pytest.raises(ValidationError):
            blocklist_service.add_manual_entry(db, ann.id, "   ")


class TestRelease:
    def test_release_when_count_drops(self, db):
        ann = _with_no_shows(db, "Ann", 2)
        blocklist_service.reconcile(db, threshold=2)

        row = db.query(Attendance).filter(Attendance.participant_id == ann.id).first()
        row.status = AttendanceStatus.attended
        db.commit()
        result = blocklist_service.reconcile(db, threshold=2)

        assert result.removed == 1
        assert _entries(db) == {}
        db.expire_all()
        person = db.get(Participant, ann.id)
        assert person.is_blocklisted is False
        assert person.blocklist_reason is None

    def test_raising_threshold_releases(self, db):
        _with_no_shows(db, "Ann", 2)
        _with_no_shows(db, "Bob", 3)
        blocklist_service.reconcile(db, threshold=2)

        result = blocklist_service.reconcile(db, threshold=3)

        assert result.added == 0
        assert result.removed == 1
        assert len(_entries(db)) == 1


class TestFailureIsolation:
    def test_one_failure_does_not_stop_others(self, db, monkeypatch):
        people = [_with_no_shows(db, name, 2) for name in ("Ann", "Bob", "Cat")]
        failing = people[1].id
        original = blocklist_service._block_participant

        def _flaky(session, participant_id, no_shows, threshold):
            if participant_id == failing:
                raise OperationalError("INSERT INTO blocklist", {}, Exception("database is locked"))
            return original(session, participant_id, no_shows, threshold)

        monkeypatch.setattr(blocklist_service, "_block_participant", _flaky)
        result = blocklist_service.reconcile(db, threshold=2)

        assert result.added == 2
        assert len(result.errors) == 1
        assert result.errors[0].participant_id == failing
        assert result.errors[0].action == "add"
        assert set(_entries(db)) == {people[0].id, people[2].id}

        # the next run picks up the participant that failed
        monkeypatch.setattr(blocklist_service, "_block_participant", original)
        retry = blocklist_service.reconcile(db, threshold=2)
        assert retry.added == 1
        assert retry.errors == []


class TestAutoReconcile:
    def test_uses_stored_threshold(self, db):
        _with_no_shows(db, "Ann", 2)
        settings_service.update_settings(db, no_show_threshold=3)

        result = blocklist_service.run_auto_reconcile(db)

        assert result.skipped is False
        assert result.added == 0

    def test_skipped_when_disabled(self, db):
        _with_no_shows(db, "Ann", 5)
        settings_service.update_settings(db, auto_block_enabled=False)

        result = blocklist_service.run_auto_reconcile(db)

        assert result.skipped is True
        assert db.query(BlocklistEntry).count() == 0

    def test_defaults_without_stored_row(self, db):
        _with_no_shows(db, "Ann", 2)
        result = blocklist_service.run_auto_reconcile(db)
        assert result.added == 1
