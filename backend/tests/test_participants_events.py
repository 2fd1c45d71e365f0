"""Tests for participant and event CRUD."""
from tests.conftest import create_test_event, create_test_participant, mark


class TestParticipants:
    def test_create(self, client):
        data = create_test_participant(client, name="Ann Lee", email="ann@example.com")
        assert data["email"] == "ann@example.com"
        assert data["is_blocklisted"] is False
        assert data["blocklist_reason"] is None

    def test_duplicate_email(self, client):
        create_test_participant(client, name="Ann Lee", email="ann@example.com")
        resp = client.post("/api/participants/", json={"name": "Other", "email": "ann@example.com"})
        assert resp.status_code == 409

    def test_email_stored_lowercase(self, client):
        data = create_test_participant(client, name="Ann Lee", email="Ann.Lee@Example.com")
        assert data["email"] == "ann.lee@example.com"
        resp = client.post("/api/participants/", json={"name": "Ann Again", "email": "ANN.LEE@example.com"})
        assert resp.status_code == 409

    def test_update_email_conflict_ignores_case(self, client):
        ann = create_test_participant(client, name="Ann Lee")
        bob = create_test_participant(client, name="Bob Ray")
        resp = client.patch(f"/api/participants/{bob['id']}", json={"email": ann["email"].upper()})
        assert resp.status_code == 409

    def test_invalid_email(self, client):
        resp = client.post("/api/participants/", json={"name": "Ann", "email": "not-an-email"})
        assert resp.status_code == 422

    def test_update(self, client):
        ann = create_test_participant(client, name="Ann Lee")
        resp = client.patch(f"/api/participants/{ann['id']}", json={"phone": "555-0100"})
        assert resp.status_code == 200
        assert resp.json()["phone"] == "555-0100"
        assert resp.json()["name"] == "Ann Lee"

    def test_update_email_conflict(self, client):
        ann = create_test_participant(client, name="Ann Lee")
        bob = create_test_participant(client, name="Bob Ray")
        resp = client.patch(f"/api/participants/{bob['id']}", json={"email": ann["email"]})
        assert resp.status_code == 409

    def test_delete_removes_attendance(self, client):
        ev = create_test_event(client)
        ann = create_test_participant(client, name="Ann Lee")
        mark(client, ev["id"], ann["id"], "attended")

        assert client.delete(f"/api/participants/{ann['id']}").status_code == 200
        assert client.get(f"/api/participants/{ann['id']}").status_code == 404
        assert client.get(f"/api/attendance/event/{ev['id']}").json() == []

    def test_get_missing(self, client):
        assert client.get("/api/participants/missing").status_code == 404


class TestEvents:
    def test_create_and_get(self, client):
        ev = create_test_event(client, name="Spring Gala")
        resp = client.get(f"/api/events/{ev['id']}")
        assert resp.status_code == 200
        assert resp.json()["name"] == "Spring Gala"
        assert resp.json()["date"] == "2026-05-01"

    def test_list(self, client):
        create_test_event(client, name="One")
        create_test_event(client, name="Two")
        assert len(client.get("/api/events/").json()) == 2

    def test_update(self, client):
        ev = create_test_event(client)
        resp = client.patch(f"/api/events/{ev['id']}", json={"location": "Main Hall"})
        assert resp.status_code == 200
        assert resp.json()["location"] == "Main Hall"

    def test_delete_releases_blocks(self, client):
        ev1 = create_test_event(client, name="One")
        ev2 = create_test_event(client, name="Two")
        ann = create_test_participant(client, name="Ann Lee")
        mark(client, ev1["id"], ann["id"])
        mark(client, ev2["id"], ann["id"])

        resp = client.delete(f"/api/events/{ev2['id']}")
        assert resp.status_code == 200
        assert resp.json()["blocklist"]["removed"] == 1
        assert client.get(f"/api/events/{ev2['id']}").status_code == 404

    def test_delete_drops_pending_undo(self, client, undo_buffer):
        ev = create_test_event(client)
        ann = create_test_participant(client, name="Ann Lee")
        mark(client, ev["id"], ann["id"], "attended")
        client.delete(f"/api/events/{ev['id']}/attendance")
        assert undo_buffer.peek(ev["id"]) is not None

        client.delete(f"/api/events/{ev['id']}")
        assert undo_buffer.peek(ev["id"]) is None

    def test_delete_missing(self, client):
        assert client.delete("/api/events/missing").status_code == 404


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}
