import asyncio

import httpx

from finance_tracker.core import settings
from finance_tracker.logger import get_logger

logger = get_logger(__name__)

HEALTH_TIMEOUT_SECONDS = 2.0


class WahaClient:
    """Minimal client for the WAHA (WhatsApp HTTP API) gateway."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        session: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        url = base_url or settings.get_env("WAHA_API_URL")
        self.base_url = url.rstrip("/") if url else None
        self.api_key = api_key or settings.get_env("WAHA_API_KEY")
        self.session = session or settings.get_env("WAHA_SESSION", settings.DEFAULT_WAHA_SESSION)
        self.headers = {"Accept": "application/json"}
        if self.api_key:
            self.headers["X-Api-Key"] = self.api_key
        self._client = client
        self._client_lock = asyncio.Lock()

    @property
    def configured(self) -> bool:
        return bool(self.base_url)

    async def aclose(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _get_client(self) -> httpx.AsyncClient:
        client = self._client
        if client is not None and not client.is_closed:
            return client

        async with self._client_lock:
            client = self._client
            if client is None or client.is_closed:
                client = httpx.AsyncClient()
                self._client = client
            return client

    async def send_text(self, chat_id: str, text: str) -> None:
        """Send a text message. Raises ``httpx.HTTPError`` on failure."""
        client = await self._get_client()
        response = await client.post(
            f"{self.base_url}/api/sendText",
            headers=self.headers,
            json={"chatId": chat_id, "text": text, "session": self.session},
        )
        response.raise_for_status()

    async def ping(self) -> bool:
        if not self.configured:
            return False
        client = await self._get_client()
        try:
            response = await client.get(
                f"{self.base_url}/api/health",
                headers=self.headers,
                timeout=HEALTH_TIMEOUT_SECONDS,
            )
        except httpx.HTTPError as exc:
            logger.warning("[WAHA] Health check failed: %s", exc)
            return False
        return response.status_code == 200
