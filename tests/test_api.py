"""
API tests for the intake and routing endpoints.

The in-memory store replaces Supabase; settings are overridden per test so no
`.env` is needed.
"""

from __future__ import annotations

from uuid import UUID

import pytest
from fastapi.testclient import TestClient

from api.main import __version__, app
from config.settings import Settings, get_settings
from conftest import make_agent
from domain.enquiry import EnquiryStatus
from services.cms_client import UpstreamUnavailableError
from services.intake_service import IntakeOutcome, IntakeResult, SyncSummary

WEBHOOK_URL = "/api/v1/webhooks/website-form"
SYNC_URL = "/api/v1/sync/form-submissions"

FORM_2_PAYLOAD = {
    "formId": 2,
    "submissionId": "812",
    "submissionData": [
        {"field": "firstname", "value": "Ayşe"},
        {"field": "surname", "value": "Yılmaz"},
        {"field": "email", "value": "AYSE@X.COM"},
        {"field": "pageURL", "value": "https://site.example/villa-7"},
    ],
}


def settings_with(secret: str | None = None) -> Settings:
    return Settings(
        supabase_url=None,
        supabase_key=None,
        payload_cms_url="https://cms.test",
        payload_cms_api_key=None,
        webhook_secret=secret,
        cms_timeout_seconds=5,
    )


@pytest.fixture
def client():
    app.dependency_overrides[get_settings] = lambda: settings_with(None)
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["version"] == __version__


class TestWebhook:
    def test_creates_enquiry(self, client, store) -> None:
        store.agents = [make_agent(1)]

        response = client.post(WEBHOOK_URL, json=FORM_2_PAYLOAD)

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "created"
        assert body["assigned_agent_id"] == str(make_agent(1).agent_id)

        enquiry = store.enquiries[UUID(body["enquiry_id"])]
        assert enquiry.email == "ayse@x.com"
        assert enquiry.source_url == "https://site.example/villa-7 | submission:812"
        assert enquiry.phone == "-"
        assert enquiry.status is EnquiryStatus.ASSIGNED

    def test_redelivery_returns_existing_enquiry(self, client, store) -> None:
        first = client.post(WEBHOOK_URL, json=FORM_2_PAYLOAD)
        second = client.post(WEBHOOK_URL, json=FORM_2_PAYLOAD)

        assert second.status_code == 200
        assert second.json()["enquiry_id"] == first.json()["enquiry_id"]
        assert store.insert_calls == 1

    def test_flat_payload(self, client, store) -> None:
        response = client.post(
            WEBHOOK_URL,
            json={"full-name": "John Michael Smith", "email": "john@x.com"},
        )

        assert response.status_code == 201
        enquiry = store.enquiries[UUID(response.json()["enquiry_id"])]
        assert (enquiry.first_name, enquiry.last_name) == ("John", "Michael Smith")

    def test_empty_payload(self, client, store) -> None:
        response = client.post(WEBHOOK_URL, json={"unrelated": True})
        assert response.status_code == 400
        assert store.insert_calls == 0

    def test_missing_email(self, client, store) -> None:
        response = client.post(WEBHOOK_URL, json={"firstname": "Ali", "phone": "123"})
        assert response.status_code == 400
        assert "email" in response.json()["detail"]

    def test_persistence_failure(self, client, store) -> None:
        store.failing_emails.add("ayse@x.com")
        response = client.post(WEBHOOK_URL, json=FORM_2_PAYLOAD)
        assert response.status_code == 500

    def test_health_lists_forms(self, client) -> None:
        response = client.get(WEBHOOK_URL)
        assert [f["id"] for f in response.json()["forms"]] == [1, 2, 3]


class TestWebhookSecret:
    @pytest.fixture(autouse=True)
    def secret(self):
        app.dependency_overrides[get_settings] = lambda: settings_with("s3cret")
        yield
        app.dependency_overrides.clear()

    def test_missing_secret_rejected(self, store) -> None:
        response = TestClient(app).post(WEBHOOK_URL, json=FORM_2_PAYLOAD)
        assert response.status_code == 401
        assert store.insert_calls == 0

    def test_bearer_token(self, store) -> None:
        response = TestClient(app).post(
            WEBHOOK_URL,
            json=FORM_2_PAYLOAD,
            headers={"Authorization": "Bearer s3cret"},
        )
        assert response.status_code == 201

    def test_query_parameter(self, store) -> None:
        response = TestClient(app).post(f"{WEBHOOK_URL}?secret=s3cret", json=FORM_2_PAYLOAD)
        assert response.status_code == 201

    def test_wrong_secret(self, store) -> None:
        response = TestClient(app).post(
            WEBHOOK_URL,
            json=FORM_2_PAYLOAD,
            headers={"Authorization": "Bearer nope"},
        )
        assert response.status_code == 401


class TestSync:
    def test_returns_summary(self, client, monkeypatch) -> None:
        import api.routers.sync as sync_router

        captured = {}

        def fake_sync(context):
            captured["context"] = context
            return SyncSummary(
                total=2,
                created=1,
                skipped=1,
                errors=0,
                results=[
                    IntakeResult(outcome=IntakeOutcome.CREATED, submission_id="2",
                                 enquiry_id=UUID("00000000-0000-0000-0000-000000000002")),
                    IntakeResult(outcome=IntakeOutcome.ALREADY_SYNCED, submission_id="1"),
                ],
            )

        monkeypatch.setattr(sync_router, "run_website_sync", fake_sync)

        response = client.post(SYNC_URL, headers={"X-Actor-Name": "Selin", "X-Actor-Id": str(make_agent(7).agent_id)})

        assert response.status_code == 200
        body = response.json()
        assert (body["total"], body["created"], body["skipped"], body["errors"]) == (2, 1, 1, 0)
        assert body["message"] == "Successfully synced 1 new enquiries"
        assert [r["status"] for r in body["results"]] == ["created", "already_synced"]
        assert captured["context"].actor_name == "Selin"

    def test_upstream_unavailable(self, client, monkeypatch) -> None:
        import api.routers.sync as sync_router

        def fake_sync(context):
            raise UpstreamUnavailableError("Cannot access website CMS API (401)", status_code=401)

        monkeypatch.setattr(sync_router, "run_website_sync", fake_sync)

        response = client.post(SYNC_URL)
        assert response.status_code == 502

    def test_invalid_actor_header(self, client) -> None:
        response = client.post(SYNC_URL, headers={"X-Actor-Id": "not-a-uuid"})
        assert response.status_code == 400


class TestEnquiriesAndRouting:
    def test_create_enquiry(self, client, store) -> None:
        store.agents = [make_agent(1, open_leads=2), make_agent(2)]

        response = client.post(
            "/api/v1/enquiries",
            json={"first_name": "Mehmet", "email": "m@x.com", "source": "PHONE_CALL"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["source"] == "PHONE_CALL"
        assert body["status"] == "ASSIGNED"
        assert body["assigned_agent_id"] == str(make_agent(2).agent_id)

    def test_create_enquiry_blank_first_name(self, client, store) -> None:
        response = client.post("/api/v1/enquiries", json={"first_name": "  ", "email": "m@x.com"})
        assert response.status_code == 400

    def test_next_agent_preview_does_not_assign(self, client, store) -> None:
        store.agents = [make_agent(1, open_enquiries=4), make_agent(2, open_enquiries=1)]

        response = client.post("/api/v1/routing/next-agent", json={"strategy": "CAPACITY"})

        assert response.status_code == 200
        assert response.json()["agent_id"] == str(make_agent(2).agent_id)
        assert store.enquiries == {}

    def test_next_agent_without_agents(self, client, store) -> None:
        response = client.post("/api/v1/routing/next-agent", json={})
        assert response.status_code == 200
        assert response.json()["agent_id"] is None

    def test_auto_assign(self, client, store) -> None:
        store.agents = [make_agent(3)]
        created = client.post("/api/v1/enquiries", json={"first_name": "A", "email": "a@x.com"}).json()
        # reassignment goes to whoever is routable now
        store.agents = [make_agent(4)]

        response = client.post(f"/api/v1/enquiries/{created['enquiry_id']}/auto-assign", json={})

        assert response.status_code == 200
        assert response.json()["assigned"] is True
        assert response.json()["assigned_agent_id"] == str(make_agent(4).agent_id)
