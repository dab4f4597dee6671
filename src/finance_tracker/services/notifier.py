import httpx

from finance_tracker.domain.formatting import format_confirmation
from finance_tracker.integration.waha import WahaClient
from finance_tracker.logger import get_logger
from finance_tracker.models import Transaction

logger = get_logger(__name__)


class Notifier:
    """Best-effort confirmations back to the sender over WhatsApp."""

    def __init__(self, waha: WahaClient):
        self.waha = waha

    @property
    def enabled(self) -> bool:
        return self.waha.configured

    async def notify(self, destination: str | None, transaction: Transaction) -> bool:
        """Send the confirmation; returns whether it went out. Never raises."""
        if not self.enabled:
            logger.debug("[WAHA] WAHA_API_URL not set; skipping confirmation.")
            return False
        if not destination:
            logger.warning("[WAHA] No destination for transaction %s; skipping.", transaction.id)
            return False

        try:
            await self.waha.send_text(destination, format_confirmation(transaction))
        except httpx.HTTPError as exc:
            logger.error("[WAHA] Failed to send confirmation to %s: %s", destination, exc)
            return False
        except Exception as exc:
            logger.error("[WAHA] Unexpected error sending confirmation to %s: %s", destination, exc)
            return False

        logger.info("[WAHA] Confirmation sent to %s for transaction %s.", destination, transaction.id)
        return True
