import pytest

from tests.fakes import FakeClock, FakeSMTP, FakeVoiceSession
from voicelead.config import EmailSettings, Settings


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def voice_session():
    return FakeVoiceSession()


@pytest.fixture
def email_settings():
    return EmailSettings(
        host="smtp.example.com",
        port=587,
        user="team@example.com",
        password="secret",
        from_address="Transmonk <team@example.com>",
        company_name="Transmonk",
        company_website="https://transmonk.example.com",
        company_phone="+91 22 5555 0100",
        company_address="Mumbai",
    )


@pytest.fixture
def settings(email_settings):
    return Settings(
        ultravox_api_key="uv-key",
        ultravox_agent_id="agent-123",
        webhook_url="https://hook.example.com/lead",
        email=email_settings,
    )


@pytest.fixture
def fake_smtp():
    FakeSMTP.reset()
    yield FakeSMTP
    FakeSMTP.reset()
