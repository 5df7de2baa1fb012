import json
import logging

import httpx
import pytest
import respx
from fastapi.testclient import TestClient

from tests.fakes import FakeSMTP
from voicelead.app import create_app
from voicelead.config import Settings
from voicelead.mailer import Mailer

ULTRAVOX_URL = "https://api.ultravox.ai/api/agents/agent-123/calls"
WEBHOOK_URL = "https://hook.example.com/lead"

LEAD = {
    "name": "Ravi Kumar",
    "email": "ravi@example.com",
    "phone": "+91 98200 12345",
    "organization": "Blue Star",
}


@pytest.fixture
def client(settings, fake_smtp):
    app = create_app(settings, mailer=Mailer(settings.email, smtp_factory=FakeSMTP))
    return TestClient(app)


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.text == "ok"


def test_unset_webhook_url_warned_at_startup(caplog):
    with caplog.at_level(logging.WARNING, logger="voicelead.app"):
        create_app(Settings(webhook_url=""))
    assert "LEAD_WEBHOOK_URL is not set" in caplog.text


class TestCreateCall:
    @respx.mock
    def test_returns_call_id_and_join_url(self, client):
        route = respx.post(ULTRAVOX_URL).mock(
            return_value=httpx.Response(201, json={"callId": "abc", "joinUrl": "wss://x", "created": "now"})
        )
        resp = client.post("/api/create-call", json={})

        assert resp.status_code == 200
        assert resp.json() == {"success": True, "callId": "abc", "joinUrl": "wss://x"}
        req = route.calls[0].request
        assert req.headers["X-API-Key"] == "uv-key"
        assert json.loads(req.content) == {}

    @pytest.mark.parametrize("overrides", [
        {"ultravox_api_key": ""},
        {"ultravox_agent_id": ""},
        {"ultravox_api_key": "", "ultravox_agent_id": ""},
    ])
    @respx.mock
    def test_missing_secrets_is_500_without_upstream_call(self, overrides, fake_smtp):
        route = respx.post(ULTRAVOX_URL).mock(return_value=httpx.Response(200, json={}))
        app = create_app(Settings(**{"ultravox_api_key": "uv-key", "ultravox_agent_id": "agent-123", **overrides}))

        resp = TestClient(app).post("/api/create-call", json={})

        assert resp.status_code == 500
        assert resp.json() == {"error": "Missing API key or Agent ID"}
        assert not route.called

    @respx.mock
    def test_upstream_error_passed_through(self, client):
        respx.post(ULTRAVOX_URL).mock(
            return_value=httpx.Response(402, json={"message": "Subscription required"})
        )
        resp = client.post("/api/create-call", json={})
        assert resp.status_code == 402
        assert resp.json() == {"error": "Subscription required"}

    @respx.mock
    def test_upstream_error_without_message(self, client):
        respx.post(ULTRAVOX_URL).mock(return_value=httpx.Response(503, text="unavailable"))
        resp = client.post("/api/create-call", json={})
        assert resp.status_code == 503
        assert resp.json() == {"error": "Failed to create call"}

    @respx.mock
    def test_transport_failure_is_500(self, client):
        respx.post(ULTRAVOX_URL).mock(side_effect=httpx.ConnectError("dns failure"))
        resp = client.post("/api/create-call", json={})
        assert resp.status_code == 500
        assert "dns failure" in resp.json()["error"]


class TestSendConfirmation:
    @respx.mock
    def test_success_sends_both_emails_and_webhook(self, client):
        hook = respx.post(WEBHOOK_URL).mock(return_value=httpx.Response(200))

        resp = client.post("/api/send-confirmation", json=LEAD)

        assert resp.status_code == 200
        assert resp.json() == {"success": True, "message": "Confirmation email sent successfully"}
        recipients = [m["To"] for m in FakeSMTP.all_sent()]
        assert recipients == ["ravi@example.com", "team@example.com"]
        assert json.loads(hook.calls[0].request.content) == {
            "visitor_name": "Ravi Kumar",
            "phone_number": "+91 98200 12345",
            "email_address": "ravi@example.com",
            "organization": "Blue Star",
        }

    @pytest.mark.parametrize("missing", [
        ("name",), ("email",), ("phone",), ("organization",),
        ("name", "email"), ("phone", "organization"),
        ("name", "email", "phone", "organization"),
    ])
    @respx.mock
    def test_missing_fields_400_and_no_email(self, client, missing):
        hook = respx.post(WEBHOOK_URL).mock(return_value=httpx.Response(200))
        body = {k: v for k, v in LEAD.items() if k not in missing}

        resp = client.post("/api/send-confirmation", json=body)

        assert resp.status_code == 400
        assert resp.json() == {"error": "All fields are required"}
        assert FakeSMTP.all_sent() == []
        assert not hook.called

    @respx.mock
    def test_empty_string_counts_as_missing(self, client):
        resp = client.post("/api/send-confirmation", json={**LEAD, "email": ""})
        assert resp.status_code == 400
        assert FakeSMTP.all_sent() == []

    def test_invalid_json_is_400(self, client):
        resp = client.post(
            "/api/send-confirmation",
            content=b"not json",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400

    @respx.mock
    def test_confirmation_failure_is_500(self, client):
        FakeSMTP.fail_on_send_to = {"ravi@example.com"}
        respx.post(WEBHOOK_URL).mock(return_value=httpx.Response(200))

        resp = client.post("/api/send-confirmation", json=LEAD)

        assert resp.status_code == 500
        assert "error" in resp.json()

    @respx.mock
    def test_internal_notification_failure_is_swallowed(self, client, caplog):
        FakeSMTP.fail_on_send_to = {"team@example.com"}
        hook = respx.post(WEBHOOK_URL).mock(return_value=httpx.Response(200))

        with caplog.at_level(logging.ERROR, logger="voicelead.app"):
            resp = client.post("/api/send-confirmation", json=LEAD)

        assert resp.status_code == 200
        assert resp.json()["success"] is True
        assert "internal notification" in caplog.text
        assert hook.called

    @respx.mock
    def test_webhook_failure_is_swallowed(self, client):
        respx.post(WEBHOOK_URL).mock(return_value=httpx.Response(500))
        resp = client.post("/api/send-confirmation", json=LEAD)
        assert resp.status_code == 200
        assert resp.json()["success"] is True

    @respx.mock
    def test_webhook_unreachable_is_swallowed(self, client):
        respx.post(WEBHOOK_URL).mock(side_effect=httpx.ConnectTimeout("timed out"))
        resp = client.post("/api/send-confirmation", json=LEAD)
        assert resp.status_code == 200

    @respx.mock
    def test_both_side_channels_failing_still_succeeds(self, client):
        FakeSMTP.fail_on_send_to = {"team@example.com"}
        respx.post(WEBHOOK_URL).mock(return_value=httpx.Response(404))
        resp = client.post("/api/send-confirmation", json=LEAD)
        assert resp.status_code == 200
        assert [m["To"] for m in FakeSMTP.all_sent()] == ["ravi@example.com"]
