import json

import httpx
import pytest
import respx

from voicelead.api_client import LeadCaptureClient
from voicelead.extraction import RegexLeadExtractor
from voicelead.lead_form import SUCCESS_PANEL_SECONDS, LeadForm, UserInfo
from voicelead.transcript import Transcript

BASE_URL = "https://widget.example.com"
CONFIRM_URL = f"{BASE_URL}/api/send-confirmation"


@pytest.fixture
def closed_events():
    return []


@pytest.fixture
def form(clock, closed_events):
    f = LeadForm(LeadCaptureClient(BASE_URL), clock, on_closed=lambda: closed_events.append(True))
    f.open()
    return f


def _fill(form, **values):
    for name, value in values.items():
        form.set_field(name, value)


class TestUserInfo:
    def test_starts_empty(self):
        assert UserInfo().to_dict() == {"name": "", "phone": "", "email": "", "organization": ""}

    def test_missing_required_ignores_phone_and_org(self):
        assert UserInfo(name="A", email="a@b.co").missing_required() == []
        assert UserInfo(name="A").missing_required() == ["email"]
        assert UserInfo(name="  ", email="a@b.co").missing_required() == ["name"]


class TestCanSubmit:
    def test_disabled_when_empty(self, form):
        assert not form.can_submit

    def test_disabled_without_email(self, form):
        _fill(form, name="Ravi", phone="98200", organization="Blue Star")
        assert not form.can_submit

    def test_enabled_with_name_and_email_only(self, form):
        _fill(form, name="Ravi", email="ravi@example.com")
        assert form.can_submit

    def test_unknown_field_rejected(self, form):
        with pytest.raises(KeyError):
            form.set_field("address", "x")


class TestSubmit:
    @respx.mock
    @pytest.mark.asyncio
    async def test_empty_email_makes_no_request(self, form):
        route = respx.post(CONFIRM_URL).mock(return_value=httpx.Response(200, json={"success": True}))
        _fill(form, name="Ravi")
        assert await form.submit() is False
        assert not route.called

    @respx.mock
    @pytest.mark.asyncio
    async def test_success_shows_panel_then_closes(self, form, clock, closed_events):
        route = respx.post(CONFIRM_URL).mock(
            return_value=httpx.Response(200, json={"success": True, "message": "ok"})
        )
        _fill(form, name="Ravi", email="ravi@example.com", phone="98200 12345", organization="Blue Star")

        assert await form.submit() is True
        assert route.called
        assert json.loads(route.calls[0].request.content) == {
            "name": "Ravi",
            "phone": "98200 12345",
            "email": "ravi@example.com",
            "organization": "Blue Star",
        }
        assert form.submit_success
        assert form.is_open

        clock.advance(SUCCESS_PANEL_SECONDS - 0.5)
        assert form.is_open

        clock.advance(0.5)
        assert not form.is_open
        assert not form.submit_success
        assert form.user_info == UserInfo()
        assert closed_events == [True]

    @respx.mock
    @pytest.mark.asyncio
    async def test_second_submit_during_success_panel_ignored(self, form, clock, closed_events):
        route = respx.post(CONFIRM_URL).mock(return_value=httpx.Response(200, json={"success": True}))
        _fill(form, name="Ravi", email="ravi@example.com")

        assert await form.submit() is True
        assert not form.can_submit
        assert await form.submit() is False
        assert route.call_count == 1

        clock.advance(SUCCESS_PANEL_SECONDS)
        assert closed_events == [True]
        assert clock.pending == []

    def test_cannot_submit_closed_form(self, clock):
        closed = LeadForm(LeadCaptureClient(BASE_URL), clock)
        _fill(closed, name="Ravi", email="ravi@example.com")
        assert not closed.can_submit

    @respx.mock
    @pytest.mark.asyncio
    async def test_failure_keeps_form_open_with_error(self, form, clock, closed_events):
        respx.post(CONFIRM_URL).mock(
            return_value=httpx.Response(500, json={"error": "SMTP relay down"})
        )
        _fill(form, name="Ravi", email="ravi@example.com")

        assert await form.submit() is False
        assert form.error == "SMTP relay down"
        assert form.is_open
        assert not form.is_submitting
        assert form.user_info.name == "Ravi"

        clock.advance(10)
        assert form.is_open
        assert closed_events == []

    @respx.mock
    @pytest.mark.asyncio
    async def test_failure_without_error_body_uses_fallback(self, form):
        respx.post(CONFIRM_URL).mock(return_value=httpx.Response(502, text="bad gateway"))
        _fill(form, name="Ravi", email="ravi@example.com")
        await form.submit()
        assert form.error == "Failed to send confirmation"

    @respx.mock
    @pytest.mark.asyncio
    async def test_network_error_shown_inline(self, form):
        respx.post(CONFIRM_URL).mock(side_effect=httpx.ConnectError("connection refused"))
        _fill(form, name="Ravi", email="ravi@example.com")
        assert await form.submit() is False
        assert "connection refused" in form.error
        assert form.is_open


class TestCancel:
    def test_cancel_resets_and_closes(self, form, closed_events):
        _fill(form, name="Ravi")
        form.error = "old error"
        form.cancel()
        assert not form.is_open
        assert form.error is None
        assert form.user_info == UserInfo()
        assert closed_events == [True]


class TestAutofill:
    def test_fills_only_empty_fields(self, form):
        _fill(form, name="Typed Name")
        transcripts = [
            Transcript("user", "my name is Ravi Kumar, email ravi@example.com"),
        ]
        filled = form.autofill(transcripts, RegexLeadExtractor())
        assert filled == {"email": "ravi@example.com"}
        assert form.user_info.name == "Typed Name"
        assert form.user_info.email == "ravi@example.com"

    def test_swappable_extractor(self, form):
        class Structured:
            def extract(self, transcripts):
                return {"organization": "Blue Star", "bogus": "x"}

        assert form.autofill([], Structured()) == {"organization": "Blue Star"}
