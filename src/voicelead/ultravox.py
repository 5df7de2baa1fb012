import httpx
import logging

from voicelead.config import DEFAULT_ULTRAVOX_API_URL

logger = logging.getLogger(__name__)


class UltravoxError(Exception):
    """Non-2xx answer from the Ultravox API."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class UltravoxClient:
    """HTTP client for creating Ultravox calls against a configured agent.

    No retries: an upstream error is raised once with the upstream message
    and status code so the endpoint can pass them through verbatim.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_ULTRAVOX_API_URL,
        timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._client = client

    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "X-API-Key": self.api_key,
        }

    async def _post(self, path: str, payload: dict) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(
                f"{self.base_url}{path}", json=payload, headers=self._headers()
            )
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(
                f"{self.base_url}{path}", json=payload, headers=self._headers()
            )

    async def create_agent_call(self, agent_id: str, overrides: dict | None = None) -> dict:
        """Create a call using the agent's defaults. Returns {callId, joinUrl}."""
        logger.info("Creating call with agent: %s", agent_id)
        resp = await self._post(f"/agents/{agent_id}/calls", overrides or {})

        if resp.is_error:
            message = _error_message(resp) or "Failed to create call"
            logger.error("Ultravox create call failed (%s): %s", resp.status_code, message)
            raise UltravoxError(message, status_code=resp.status_code)

        data = resp.json()
        logger.info("Call created: %s", data.get("callId"))
        return {"callId": data.get("callId"), "joinUrl": data.get("joinUrl")}


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return ""
    if isinstance(body, dict):
        return body.get("message") or body.get("detail") or body.get("error") or ""
    return ""
