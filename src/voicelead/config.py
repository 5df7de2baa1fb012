"""Environment configuration.

Settings are read once at startup and passed explicitly into the app
factory.  Missing secrets are not fatal here: the create-call endpoint
answers 500 per request, so the server can still serve the form flow.
"""

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DEFAULT_ULTRAVOX_API_URL = "https://api.ultravox.ai/api"

REQUIRED_VARS = [
    "ULTRAVOX_API_KEY",
    "ULTRAVOX_AGENT_ID",
    "EMAIL_HOST",
    "EMAIL_USER",
    "EMAIL_PASS",
    "EMAIL_FROM",
    "LEAD_WEBHOOK_URL",
]

OPTIONAL_VARS = [
    "EMAIL_PORT",
    "EMAIL_SECURE",
    "COMPANY_NAME",
    "COMPANY_WEBSITE",
    "COMPANY_PHONE",
    "COMPANY_ADDRESS",
    "LOG_LEVEL",
]


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class EmailSettings:
    host: str = ""
    port: int = 587
    secure: bool = False
    user: str = ""
    password: str = ""
    from_address: str = ""
    company_name: str = "Transmonk"
    company_website: str = ""
    company_phone: str = ""
    company_address: str = ""

    @property
    def internal_recipient(self) -> str:
        """Internal lead notifications go to the SMTP account itself."""
        return self.user


@dataclass(frozen=True)
class Settings:
    ultravox_api_key: str = ""
    ultravox_agent_id: str = ""
    ultravox_api_url: str = DEFAULT_ULTRAVOX_API_URL
    webhook_url: str = ""
    email: EmailSettings = field(default_factory=EmailSettings)
    log_level: str = "INFO"

    @property
    def has_ultravox_credentials(self) -> bool:
        return bool(self.ultravox_api_key and self.ultravox_agent_id)

    @classmethod
    def from_env(cls) -> "Settings":
        port_str = os.getenv("EMAIL_PORT", "587").strip()
        try:
            port = int(port_str)
        except ValueError:
            logger.warning("EMAIL_PORT %r is not a number, using 587", port_str)
            port = 587

        email = EmailSettings(
            host=os.getenv("EMAIL_HOST", ""),
            port=port,
            secure=_env_bool("EMAIL_SECURE"),
            user=os.getenv("EMAIL_USER", ""),
            password=os.getenv("EMAIL_PASS", ""),
            from_address=os.getenv("EMAIL_FROM", ""),
            company_name=os.getenv("COMPANY_NAME", "Transmonk"),
            company_website=os.getenv("COMPANY_WEBSITE", ""),
            company_phone=os.getenv("COMPANY_PHONE", ""),
            company_address=os.getenv("COMPANY_ADDRESS", ""),
        )
        return cls(
            ultravox_api_key=os.getenv("ULTRAVOX_API_KEY", ""),
            ultravox_agent_id=os.getenv("ULTRAVOX_AGENT_ID", ""),
            ultravox_api_url=os.getenv("ULTRAVOX_API_URL", DEFAULT_ULTRAVOX_API_URL),
            webhook_url=os.getenv("LEAD_WEBHOOK_URL", ""),
            email=email,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


def validate_config() -> list[str]:
    """Log missing environment variables at startup.

    Returns the list of missing required variables.  Unlike a hard startup
    check this never exits the process.
    """
    missing = [var for var in REQUIRED_VARS if not os.getenv(var)]
    if missing:
        logger.error("Missing required environment variables: %s", ", ".join(missing))

    for var in OPTIONAL_VARS:
        if not os.getenv(var):
            logger.warning("Optional env var %s is not set", var)
    return missing
