import httpx
import logging

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Backend answered with an error; message is the server's `error` field."""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class LeadCaptureClient:
    """Client for the two backend endpoints, used by the call widget.

    Fire-and-forget from the widget's point of view: no retry, no timeout
    beyond the transport default, no cancellation.
    """

    def __init__(
        self,
        base_url: str = "",
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        if client is not None:
            self._client = client
        else:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"Content-Type": "application/json"},
                timeout=None,
            )

    async def close(self):
        await self._client.aclose()

    async def _post(self, path: str, payload: dict, fallback: str) -> dict:
        resp = await self._client.post(path, json=payload)
        if resp.is_error:
            try:
                message = resp.json().get("error") or fallback
            except (ValueError, AttributeError):
                message = fallback
            raise ApiError(message, status_code=resp.status_code)
        return resp.json()

    async def create_call(self) -> dict:
        """Returns {success, callId, joinUrl}."""
        return await self._post("/api/create-call", {}, "Failed to create call")

    async def send_confirmation(self, user_info: dict) -> dict:
        return await self._post(
            "/api/send-confirmation", user_info, "Failed to send confirmation"
        )
