from __future__ import annotations

from abc import ABC, abstractmethod

from finance_tracker.logger import get_logger
from finance_tracker.models import Transaction, TransactionCandidate

from .feed import Listener, Subscription, TransactionFeed

logger = get_logger(__name__)


class TransactionStore(ABC):
    """Append-only transaction storage with a live insert feed."""

    name = "store"

    def __init__(self, feed: TransactionFeed | None = None):
        self.feed = feed or TransactionFeed()

    @property
    @abstractmethod
    def configured(self) -> bool:
        """Whether the backend has what it needs to accept writes."""

    @abstractmethod
    async def _insert(
        self,
        candidate: TransactionCandidate,
        raw_text: str | None,
        source_identifier: str | None,
    ) -> Transaction:
        """Persist one record and return it with ``id``/``created_at`` set."""

    @abstractmethod
    async def list(self) -> list[Transaction]:
        """Return every record, most recent first."""

    @abstractmethod
    async def ping(self) -> bool:
        """Check that the backend answers."""

    async def insert(
        self,
        candidate: TransactionCandidate,
        *,
        raw_text: str | None = None,
        source_identifier: str | None = None,
    ) -> Transaction:
        transaction = await self._insert(candidate, raw_text, source_identifier)
        logger.info(
            "[STORE] Saved %s %.2f (%s) as %s via %s.",
            transaction.type.value,
            transaction.amount,
            transaction.category,
            transaction.id,
            self.name,
        )
        self.feed.publish(transaction)
        return transaction

    def subscribe(self, listener: Listener) -> Subscription:
        return self.feed.subscribe(listener)

    async def aclose(self) -> None:
        return None
