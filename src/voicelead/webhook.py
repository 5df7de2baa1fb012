import httpx
import logging

logger = logging.getLogger(__name__)


def build_lead_payload(lead: dict) -> dict:
    """Field names expected by the automation scenario behind the webhook."""
    return {
        "visitor_name": lead.get("name", ""),
        "phone_number": lead.get("phone", ""),
        "email_address": lead.get("email", ""),
        "organization": lead.get("organization", ""),
    }


class LeadWebhookClient:
    """Forwards captured leads to an external automation webhook.

    Best effort: failures are logged and reported as False, never raised.
    There is no retry.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.url = url
        self.timeout = timeout
        self._client = client

    async def _post(self, payload: dict) -> httpx.Response:
        headers = {"Content-Type": "application/json"}
        if self._client is not None:
            return await self._client.post(self.url, json=payload, headers=headers)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.url, json=payload, headers=headers)

    async def send_lead(self, lead: dict) -> bool:
        if not self.url:
            logger.warning("Lead webhook URL not configured, skipping")
            return False
        try:
            resp = await self._post(build_lead_payload(lead))
        except Exception as e:
            logger.error("Failed to send lead to webhook: %s", e)
            return False

        if resp.is_error:
            logger.error("Lead webhook responded with status: %s", resp.status_code)
            return False
        logger.info("Lead sent to webhook successfully")
        return True
