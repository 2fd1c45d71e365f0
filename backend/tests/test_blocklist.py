"""Tests for blocklist routes, settings and the explicit sync."""
from tests.conftest import create_test_event, create_test_participant, mark


def _no_shows(client, participant_id: str, count: int, prefix: str = "Missed"):
    for i in range(count):
        ev = create_test_event(client, name=f"{prefix} {participant_id[:6]} {i}")
        mark(client, ev["id"], participant_id, "no_show")


class TestManualBlocklist:
    def test_add_and_list(self, client):
        ann = create_test_participant(client, name="Ann Lee")
        resp = client.post("/api/blocklist/", json={"participant_id": ann["id"], "reason": "Fraud"})
        assert resp.status_code == 201
        assert resp.json()["reason"] == "manual"
        assert resp.json()["note"] == "Fraud"

        items = client.get("/api/blocklist/").json()
        assert len(items) == 1
        assert items[0]["name"] == "Ann Lee"
        assert items[0]["no_show_count"] == 0
        assert client.get("/api/blocklist/count").json() == {"count": 1}

        person = client.get(f"/api/participants/{ann['id']}").json()
        assert person["is_blocklisted"] is True
        assert person["blocklist_reason"] == "Fraud"

    def test_blocklisted_hidden_from_default_listing(self, client):
        ann = create_test_participant(client, name="Ann Lee")
        create_test_participant(client, name="Bob Ray")
        client.post("/api/blocklist/", json={"participant_id": ann["id"], "reason": "Fraud"})
        assert [p["name"] for p in client.get("/api/participants/").json()] == ["Bob Ray"]
        assert len(client.get("/api/participants/?include_blocklisted=true").json()) == 2

    def test_add_requires_reason(self, client):
        ann = create_test_participant(client, name="Ann Lee")
        resp = client.post("/api/blocklist/", json={"participant_id": ann["id"], "reason": " "})
        assert resp.status_code == 400

    def test_add_unknown_participant(self, client):
        resp = client.post("/api/blocklist/", json={"participant_id": "missing", "reason": "x"})
        assert resp.status_code == 404

    def test_remove(self, client):
        ann = create_test_participant(client, name="Ann Lee")
        client.post("/api/blocklist/", json={"participant_id": ann["id"], "reason": "Fraud"})
        resp = client.delete(f"/api/blocklist/{ann['id']}")
        assert resp.status_code == 200
        assert resp.json()["unblock_override"] is False
        assert client.get("/api/blocklist/").json() == []
        assert client.get(f"/api/participants/{ann['id']}").json()["is_blocklisted"] is False
        assert client.delete(f"/api/blocklist/{ann['id']}").status_code == 404

    def test_unblock_over_threshold_survives_sync(self, client):
        ann = create_test_participant(client, name="Ann Lee")
        _no_shows(client, ann["id"], 2)
        resp = client.delete(f"/api/blocklist/{ann['id']}")
        assert resp.status_code == 200
        assert resp.json()["unblock_override"] is True

        # someone else's attendance write does not re-block Ann
        ev = create_test_event(client, name="Another")
        zed = create_test_participant(client, name="Zed Park")
        assert mark(client, ev["id"], zed["id"], "attended")["blocklist"]["added"] == 0

        sync = client.post("/api/blocklist/sync").json()
        assert sync["added"] == 0
        assert sync["removed"] == 0
        assert client.get(f"/api/participants/{ann['id']}").json()["is_blocklisted"] is False
        assert client.get("/api/blocklist/").json() == []
        assert client.get("/api/blocklist/count").json() == {"count": 0}
        assert client.get("/api/blocklist/stats").json()["total"] == 0

    def test_unblock_override_holds_after_more_no_shows(self, client):
        ann = create_test_participant(client, name="Ann Lee")
        _no_shows(client, ann["id"], 2)
        client.delete(f"/api/blocklist/{ann['id']}")

        _no_shows(client, ann["id"], 1, prefix="Later")
        assert client.get(f"/api/participants/{ann['id']}").json()["is_blocklisted"] is False
        # the override is not a blocklist entry, so a second unblock finds nothing
        assert client.delete(f"/api/blocklist/{ann['id']}").status_code == 404

    def test_manual_block_replaces_override(self, client):
        ann = create_test_participant(client, name="Ann Lee")
        _no_shows(client, ann["id"], 2)
        client.delete(f"/api/blocklist/{ann['id']}")

        resp = client.post("/api/blocklist/", json={"participant_id": ann["id"], "reason": "Blocked again"})
        assert resp.status_code == 201
        items = client.get("/api/blocklist/").json()
        assert [(i["email"], i["reason"], i["note"]) for i in items] == [(ann["email"], "manual", "Blocked again")]

    def test_reserved_reason_rejected(self, client):
        ann = create_test_participant(client, name="Ann Lee")
        resp = client.post("/api/blocklist/", json={"participant_id": ann["id"], "reason": "manually_unblocked"})
        assert resp.status_code == 400

    def test_stats(self, client):
        ann = create_test_participant(client, name="Ann Lee")
        bob = create_test_participant(client, name="Bob Ray")
        _no_shows(client, ann["id"], 2)
        client.post("/api/blocklist/", json={"participant_id": bob["id"], "reason": "Manual"})
        stats = client.get("/api/blocklist/stats").json()
        assert stats == {"total": 2, "auto_blocked": 1, "manually_blocked": 1}


class TestSettings:
    def test_defaults(self, client):
        assert client.get("/api/settings/").json() == {"no_show_threshold": 2, "auto_block_enabled": True}

    def test_update(self, client):
        resp = client.put("/api/settings/", json={"no_show_threshold": 3})
        assert resp.status_code == 200
        assert resp.json() == {"no_show_threshold": 3, "auto_block_enabled": True}
        assert client.get("/api/settings/").json()["no_show_threshold"] == 3

    def test_invalid_threshold(self, client):
        assert client.put("/api/settings/", json={"no_show_threshold": 0}).status_code == 422

    def test_disabled_skips_triggered_reconcile(self, client):
        client.put("/api/settings/", json={"auto_block_enabled": False})
        ann = create_test_participant(client, name="Ann Lee")
        ev1 = create_test_event(client, name="One")
        ev2 = create_test_event(client, name="Two")
        mark(client, ev1["id"], ann["id"])
        data = mark(client, ev2["id"], ann["id"])
        assert data["blocklist"]["skipped"] is True
        assert client.get("/api/blocklist/").json() == []


class TestSync:
    def test_sync_with_stored_threshold(self, client):
        client.put("/api/settings/", json={"auto_block_enabled": False})
        ann = create_test_participant(client, name="Ann Lee")
        _no_shows(client, ann["id"], 2)

        resp = client.post("/api/blocklist/sync")
        assert resp.status_code == 200
        assert resp.json() == {"added": 1, "removed": 0, "errors": [], "skipped": False}

    def test_sync_with_override(self, client):
        ann = create_test_participant(client, name="Ann Lee")
        _no_shows(client, ann["id"], 2)
        assert len(client.get("/api/blocklist/").json()) == 1

        resp = client.post("/api/blocklist/sync", json={"threshold": 5})
        assert resp.json()["removed"] == 1
        assert client.get("/api/blocklist/").json() == []

    def test_sync_is_idempotent(self, client):
        ann = create_test_participant(client, name="Ann Lee")
        _no_shows(client, ann["id"], 3)
        resp = client.post("/api/blocklist/sync")
        assert resp.json() == {"added": 0, "removed": 0, "errors": [], "skipped": False}

    def test_sync_rejects_bad_threshold(self, client):
        resp = client.post("/api/blocklist/sync", json={"threshold": 0})
        assert resp.status_code == 400
        assert resp.json()["error"] == "ValidationError"
