import httpx
import structlog

from .errors import RelayError
from .settings import NOTIFY_TIMEOUT_SECONDS

logger = structlog.get_logger(__name__)


class Notifier:
    """Best-effort, at-most-once POST of a chat message to a webhook URL."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def _post(self, url: str, message: str) -> None:
        try:
            r = await self.client.post(url, json={"content": message}, timeout=NOTIFY_TIMEOUT_SECONDS)
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RelayError("Notification rejected", detail=f"status={e.response.status_code}")
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            # InvalidURL is raised while building the request, outside HTTPError
            raise RelayError("Notification not delivered", detail=f"{type(e).__name__}: {e}")

    async def notify(self, url: str, message: str) -> None:
        try:
            await self._post(url, message)
        except RelayError as e:
            logger.error("notification_failed", error=e.message, detail=e.detail)
            return
        logger.info("notification_sent")
