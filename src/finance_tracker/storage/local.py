from __future__ import annotations

import asyncio
import json
import os
import uuid
from datetime import datetime, timezone

from pydantic import ValidationError

from finance_tracker.errors import StorageError
from finance_tracker.logger import get_logger
from finance_tracker.models import Transaction, TransactionCandidate

from .base import TransactionStore
from .feed import TransactionFeed

logger = get_logger(__name__)


class LocalTransactionStore(TransactionStore):
    """JSON file store for running without Supabase."""

    name = "local"

    def __init__(self, data_path: str = "transactions.json", feed: TransactionFeed | None = None):
        super().__init__(feed)
        self.data_path = data_path
        self._records: list[Transaction] = []
        self._lock = asyncio.Lock()
        self.load()

    @property
    def configured(self) -> bool:
        return True

    def load(self) -> None:
        if not os.path.exists(self.data_path):
            self._records = []
            return
        try:
            with open(self.data_path, encoding="utf-8") as handle:
                raw = json.load(handle)
            self._records = [Transaction.model_validate(item) for item in raw]
        except (json.JSONDecodeError, ValidationError, TypeError) as exc:
            logger.warning("[STORE] Could not read %s, starting empty: %s", self.data_path, exc)
            self._records = []

    def _save(self) -> None:
        tmp_path = f"{self.data_path}.tmp"
        payload = [record.model_dump(mode="json") for record in self._records]
        with open(tmp_path, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2, ensure_ascii=False)
        os.replace(tmp_path, self.data_path)

    async def _insert(
        self,
        candidate: TransactionCandidate,
        raw_text: str | None,
        source_identifier: str | None,
    ) -> Transaction:
        async with self._lock:
            created_at = datetime.now(timezone.utc)
            if self._records and created_at < self._records[-1].created_at:
                created_at = self._records[-1].created_at
            transaction = Transaction(
                **candidate.model_dump(),
                id=uuid.uuid4().hex,
                created_at=created_at,
                raw_text=raw_text,
                source_identifier=source_identifier,
            )
            self._records.append(transaction)
            try:
                await asyncio.to_thread(self._save)
            except OSError as exc:
                self._records.pop()
                raise StorageError(f"Could not write {self.data_path}: {exc}") from exc
            return transaction

    async def list(self) -> list[Transaction]:
        # Stable sort, then reverse: equal timestamps keep newest-inserted first.
        ordered = sorted(self._records, key=lambda record: record.created_at)
        ordered.reverse()
        return ordered

    async def ping(self) -> bool:
        return True
