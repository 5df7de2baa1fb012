import logging
import os

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from voicelead.config import Settings, validate_config
from voicelead.mailer import LeadDetails, Mailer
from voicelead.ultravox import UltravoxClient, UltravoxError
from voicelead.webhook import LeadWebhookClient

load_dotenv()

logger = logging.getLogger(__name__)

REQUIRED_LEAD_FIELDS = ("name", "email", "phone", "organization")


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def create_app(
    settings: Settings | None = None,
    *,
    ultravox: UltravoxClient | None = None,
    mailer: Mailer | None = None,
    webhook: LeadWebhookClient | None = None,
) -> FastAPI:
    """Build the API with explicit configuration and collaborators.

    Collaborators default to real clients built from `settings`; tests
    pass fakes or respx-mocked clients instead.
    """
    settings = settings or Settings.from_env()
    ultravox = ultravox or UltravoxClient(
        api_key=settings.ultravox_api_key,
        base_url=settings.ultravox_api_url,
    )
    mailer = mailer or Mailer(settings.email)
    webhook = webhook or LeadWebhookClient(settings.webhook_url)
    if not settings.webhook_url:
        logger.warning("LEAD_WEBHOOK_URL is not set, captured leads will not be forwarded")

    app = FastAPI(title="Voice Lead Capture")
    app.state.settings = settings

    @app.get("/health")
    async def health():
        return PlainTextResponse("ok")

    @app.post("/api/create-call")
    async def create_call():
        if not settings.has_ultravox_credentials:
            return _error("Missing API key or Agent ID", 500)

        try:
            call = await ultravox.create_agent_call(settings.ultravox_agent_id)
        except UltravoxError as e:
            return _error(e.message, e.status_code)
        except Exception as e:
            logger.exception("create-call failed")
            return _error(str(e) or "Internal server error", 500)

        return {"success": True, "callId": call["callId"], "joinUrl": call["joinUrl"]}

    @app.post("/api/send-confirmation")
    async def send_confirmation(request: Request):
        try:
            body = await request.json()
        except ValueError:
            return _error("Invalid JSON body", 400)
        if not isinstance(body, dict) or not all(body.get(f) for f in REQUIRED_LEAD_FIELDS):
            return _error("All fields are required", 400)

        lead = LeadDetails.from_dict(body)
        logger.info("Sending confirmation email to: %s", lead.email)

        try:
            await mailer.send_confirmation(lead)
        except Exception as e:
            logger.error("Error sending confirmation: %s", e)
            return _error(str(e) or "Failed to send confirmation email", 500)

        # Side channels below never affect the response.
        try:
            await mailer.send_internal_notification(lead)
        except Exception as e:
            logger.error("Failed to send internal notification: %s", e)

        await webhook.send_lead(body)

        return {"success": True, "message": "Confirmation email sent successfully"}

    return app


def main() -> None:
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    validate_config()
    port = int(os.getenv("PORT", "8000"))
    uvicorn.run(create_app(settings), host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
