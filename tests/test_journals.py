"""
Journal API Tests

- POST /journal          - create in processing state, dispatch enrichment
- GET  /journal          - list newest first with cache headers
- POST /journal/webhook  - single finalizing update
- GET/DELETE /journal/{id}
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch
from uuid import UUID, uuid4

import requests

import serenity.core.config as config
from serenity.journals.models import JournalEntry

from conftest import make_user

ENRICHMENT_FIELDS = ("summary", "mood_tags", "keywords", "sentences", "song")


def create_entry(client, headers, **overrides):
    body = {"title": "Sunday", "content": "Long walk by the river, felt calm and grateful."}
    body.update(overrides)
    return client.post("/journal", json=body, headers=headers)


class TestCreateJournal:
    def test_returns_processing_record_with_tags(self, client, auth_headers, user):
        resp = create_entry(client, auth_headers)

        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "processing"
        assert data["is_processing"] is True
        assert data["tags"] == ["gratitude", "work", "family"]
        assert data["user_id"] == str(user.id)
        for field in ENRICHMENT_FIELDS:
            assert data[field] is None

    def test_dispatches_content_to_processing_service(self, client, auth_headers, processing_service):
        resp = create_entry(client, auth_headers, location={"placeName": "Pune", "lat": 18.52})

        processing_service.assert_called_once()
        url = processing_service.call_args.args[0]
        payload = processing_service.call_args.kwargs["json"]
        assert url == "http://processing.test/journal-async"
        assert payload["journal_id"] == resp.json()["id"]
        assert payload["text"] == "Long walk by the river, felt calm and grateful."
        assert payload["webhook_url"] == "http://testserver/journal/webhook"
        assert payload["location"] == "Pune"
        assert processing_service.call_args.kwargs["timeout"] == 10

    def test_dispatch_failure_does_not_fail_creation(self, client, auth_headers, processing_service, db):
        processing_service.side_effect = requests.ConnectionError("processing service down")

        resp = create_entry(client, auth_headers)

        assert resp.status_code == 200
        assert resp.json()["is_processing"] is True
        stored = db.get(JournalEntry, UUID(resp.json()["id"]))
        assert stored is not None and stored.is_processing is True

    def test_dispatch_timeout_does_not_fail_creation(self, client, auth_headers, processing_service):
        processing_service.side_effect = requests.Timeout("timed out")

        resp = create_entry(client, auth_headers)

        assert resp.status_code == 200
        assert resp.json()["status"] == "processing"

    def test_malformed_tags_yield_empty_list(self, client, auth_headers, ai_service):
        ai_service.tags_response = "I think good tags would be: calm, river"

        resp = create_entry(client, auth_headers)

        assert resp.status_code == 200
        assert resp.json()["tags"] == []

    def test_persistence_failure_returns_500_with_error(self, client, auth_headers):
        with patch("serenity.journals.routes.create_journal", side_effect=RuntimeError("db down")):
            resp = create_entry(client, auth_headers)

        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to create journal"}

    def test_requires_authentication(self, client):
        resp = client.post("/journal", json={"title": "t", "content": "c"})
        assert resp.status_code in (401, 403)


class TestListJournals:
    def test_newest_first_and_owner_only(self, client, auth_headers, user, db):
        other = make_user(db, email="other@example.com")
        now = datetime.now(timezone.utc)
        db.add_all([
            JournalEntry(user_id=user.id, title="old", content="a", tags=[], created_at=now - timedelta(days=2)),
            JournalEntry(user_id=user.id, title="new", content="b", tags=[], created_at=now),
            JournalEntry(user_id=other.id, title="foreign", content="c", tags=[], created_at=now),
        ])
        db.commit()

        resp = client.get("/journal", headers=auth_headers)

        assert resp.status_code == 200
        assert [j["title"] for j in resp.json()] == ["new", "old"]
        assert resp.headers["cache-control"] == "private, s-maxage=30, stale-while-revalidate=60"

    def test_created_entry_is_visible_while_processing(self, client, auth_headers):
        created = create_entry(client, auth_headers).json()

        listed = client.get("/journal", headers=auth_headers).json()

        assert [j["id"] for j in listed] == [created["id"]]
        assert listed[0]["is_processing"] is True


class TestJournalWebhook:
    payload = {
        "summary": "A calm walk.",
        "mood_tags": ["calm", "grateful"],
        "keywords": ["river", "walk"],
        "sentences": ["Long walk by the river.", "Felt calm and grateful."],
    }

    def test_finalizes_entry(self, client, auth_headers, ai_service):
        ai_service.embedding = [0.1, 0.2, 0.3]
        created = create_entry(client, auth_headers).json()

        resp = client.post("/journal/webhook", json={"journal_id": created["id"], **self.payload})

        assert resp.status_code == 200
        assert resp.json() == {"status": "processed", "journal_id": created["id"]}
        entry = client.get(f"/journal/{created['id']}", headers=auth_headers).json()
        assert entry["is_processing"] is False
        assert entry["summary"] == "A calm walk."
        assert entry["mood_tags"] == ["calm", "grateful"]
        assert entry["keywords"] == ["river", "walk"]
        assert entry["sentences"] == self.payload["sentences"]
        assert "Summary: A calm walk." in ai_service.embed_calls[0]

    def test_embedding_failure_still_finalizes(self, client, auth_headers, db):
        created = create_entry(client, auth_headers).json()

        resp = client.post("/journal/webhook", json={"journal_id": created["id"], **self.payload})

        assert resp.status_code == 200
        entry = client.get(f"/journal/{created['id']}", headers=auth_headers).json()
        assert entry["is_processing"] is False

    def test_second_call_is_ignored(self, client, auth_headers):
        created = create_entry(client, auth_headers).json()
        client.post("/journal/webhook", json={"journal_id": created["id"], **self.payload})

        resp = client.post(
            "/journal/webhook", json={"journal_id": created["id"], "summary": "overwritten?"}
        )

        assert resp.json()["status"] == "already_processed"
        entry = client.get(f"/journal/{created['id']}", headers=auth_headers).json()
        assert entry["summary"] == "A calm walk."

    def test_unknown_entry_is_404(self, client):
        resp = client.post("/journal/webhook", json={"journal_id": str(uuid4()), **self.payload})
        assert resp.status_code == 404

    def test_secret_is_enforced_when_configured(self, client, auth_headers, monkeypatch):
        monkeypatch.setattr(config, "JOURNAL_WEBHOOK_SECRET", "shh")
        created = create_entry(client, auth_headers).json()

        rejected = client.post("/journal/webhook", json={"journal_id": created["id"], **self.payload})
        accepted = client.post(
            "/journal/webhook",
            json={"journal_id": created["id"], **self.payload},
            headers={"X-Webhook-Secret": "shh"},
        )

        assert rejected.status_code == 401
        assert accepted.status_code == 200


class TestSingleJournal:
    def test_get_and_delete(self, client, auth_headers):
        created = create_entry(client, auth_headers).json()

        assert client.get(f"/journal/{created['id']}", headers=auth_headers).status_code == 200
        assert client.delete(f"/journal/{created['id']}", headers=auth_headers).status_code == 200
        assert client.get(f"/journal/{created['id']}", headers=auth_headers).status_code == 404

    def test_other_users_entry_is_hidden(self, client, auth_headers, db):
        other = make_user(db, email="other@example.com")
        entry = JournalEntry(user_id=other.id, title="private", content="x", tags=[])
        db.add(entry)
        db.commit()

        assert client.get(f"/journal/{entry.id}", headers=auth_headers).status_code == 404
        assert client.delete(f"/journal/{entry.id}", headers=auth_headers).status_code == 404
