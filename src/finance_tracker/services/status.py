import asyncio
from enum import Enum
from typing import Any

from finance_tracker.extraction.base import Extractor
from finance_tracker.integration.waha import WahaClient
from finance_tracker.logger import get_logger
from finance_tracker.storage.base import TransactionStore
from finance_tracker.storage.supabase import SupabaseTransactionStore

logger = get_logger(__name__)


class DependencyState(str, Enum):
    NOT_CONFIGURED = "not_configured"
    CONNECTED = "connected"
    UNREACHABLE = "unreachable"


async def _probe(name: str, configured: bool, check: Any) -> DependencyState:
    if not configured:
        return DependencyState.NOT_CONFIGURED
    try:
        reachable = await check()
    except Exception as exc:
        logger.warning("[STATUS] %s check raised: %s", name, exc)
        reachable = False
    return DependencyState.CONNECTED if reachable else DependencyState.UNREACHABLE


class StatusAggregator:
    """Diagnostic snapshot of the three external dependencies."""

    def __init__(self, store: TransactionStore, extractor: Extractor, waha: WahaClient):
        self.store = store
        self.extractor = extractor
        self.waha = waha

    @property
    def storage_configured(self) -> bool:
        # The local fallback store does not count as a configured Supabase.
        return isinstance(self.store, SupabaseTransactionStore) and self.store.configured

    async def collect(self) -> dict[str, DependencyState]:
        supabase, gemini, waha = await asyncio.gather(
            _probe("supabase", self.storage_configured, self.store.ping),
            _probe(
                "gemini",
                self.extractor.configured,
                lambda: asyncio.to_thread(self.extractor.ping),
            ),
            _probe("waha", self.waha.configured, self.waha.ping),
        )
        return {"supabase": supabase, "gemini": gemini, "waha": waha}

    async def report(self) -> dict[str, Any]:
        states = await self.collect()
        return {
            **{name: state is DependencyState.CONNECTED for name, state in states.items()},
            "env": {
                name: state is not DependencyState.NOT_CONFIGURED for name, state in states.items()
            },
            "states": {name: state.value for name, state in states.items()},
        }
