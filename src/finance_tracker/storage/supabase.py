from __future__ import annotations

import asyncio
from typing import Any

import httpx
from pydantic import ValidationError

from finance_tracker.core import settings
from finance_tracker.errors import StorageError
from finance_tracker.logger import get_logger
from finance_tracker.models import Transaction, TransactionCandidate

from .base import TransactionStore
from .feed import TransactionFeed

logger = get_logger(__name__)

# Domain field -> column name in the hosted table.
COLUMN_MAP = {"source_identifier": "whatsapp_from"}


def to_row(
    candidate: TransactionCandidate,
    raw_text: str | None,
    source_identifier: str | None,
) -> dict[str, Any]:
    return {
        "amount": candidate.amount,
        "type": candidate.type.value,
        "category": candidate.category,
        "description": candidate.description,
        "raw_text": raw_text,
        COLUMN_MAP["source_identifier"]: source_identifier,
    }


def from_row(row: dict[str, Any]) -> Transaction:
    data = dict(row)
    for field, column in COLUMN_MAP.items():
        if column in data:
            data[field] = data.pop(column)
    return Transaction.model_validate(data)


def _describe_http_error(exc: httpx.HTTPError) -> str:
    if isinstance(exc, httpx.HTTPStatusError):
        body = exc.response.text[:500]
        return f"status {exc.response.status_code}: {body}"
    return str(exc) or exc.__class__.__name__


class SupabaseTransactionStore(TransactionStore):
    """Transactions table accessed through Supabase's PostgREST API."""

    name = "supabase"

    def __init__(
        self,
        url: str | None = None,
        key: str | None = None,
        table: str | None = None,
        client: httpx.AsyncClient | None = None,
        feed: TransactionFeed | None = None,
    ):
        super().__init__(feed)
        base_url = url or settings.get_env("SUPABASE_URL")
        self.base_url = base_url.rstrip("/") if base_url else None
        self.key = key or settings.get_env("SUPABASE_ANON_KEY")
        self.table = table or settings.get_env("SUPABASE_TABLE", settings.DEFAULT_SUPABASE_TABLE)
        self.headers = {
            "apikey": self.key or "",
            "Authorization": f"Bearer {self.key}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        self._client = client
        self._client_lock = asyncio.Lock()

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.key)

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/rest/v1/{self.table}"

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

    def _require_configured(self) -> None:
        if not self.configured:
            raise StorageError("Supabase is not configured (SUPABASE_URL / SUPABASE_ANON_KEY).")

    async def _insert(
        self,
        candidate: TransactionCandidate,
        raw_text: str | None,
        source_identifier: str | None,
    ) -> Transaction:
        self._require_configured()
        client = await self._get_client()
        try:
            response = await client.post(
                self.endpoint,
                headers={**self.headers, "Prefer": "return=representation"},
                json=[to_row(candidate, raw_text, source_identifier)],
            )
            response.raise_for_status()
            rows = response.json()
        except httpx.HTTPError as exc:
            logger.error("[STORE] Supabase insert failed: %s", _describe_http_error(exc))
            raise StorageError(f"Supabase insert failed: {_describe_http_error(exc)}") from exc
        except ValueError as exc:
            raise StorageError("Supabase returned an unreadable insert response.") from exc

        if not isinstance(rows, list) or not rows:
            raise StorageError("Supabase insert returned no rows.")
        try:
            return from_row(rows[0])
        except ValidationError as exc:
            raise StorageError(f"Supabase returned an invalid row: {exc}") from exc

    async def list(self) -> list[Transaction]:
        self._require_configured()
        client = await self._get_client()
        try:
            response = await client.get(
                self.endpoint,
                headers=self.headers,
                params={"select": "*", "order": "created_at.desc"},
            )
            response.raise_for_status()
            rows = response.json()
        except httpx.HTTPError as exc:
            logger.error("[STORE] Supabase list failed: %s", _describe_http_error(exc))
            raise StorageError(f"Supabase list failed: {_describe_http_error(exc)}") from exc
        except ValueError as exc:
            raise StorageError("Supabase returned an unreadable list response.") from exc

        transactions: list[Transaction] = []
        for row in rows or []:
            try:
                transactions.append(from_row(row))
            except (ValidationError, TypeError, ValueError) as exc:
                row_id = row.get("id") if isinstance(row, dict) else row
                logger.warning("[STORE] Skipping unreadable row %s: %s", row_id, exc)
        return transactions

    async def ping(self) -> bool:
        if not self.configured:
            return False
        client = await self._get_client()
        try:
            response = await client.get(
                self.endpoint,
                headers=self.headers,
                params={"select": "id", "limit": 1},
                timeout=5.0,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("[STATUS] Supabase unreachable: %s", _describe_http_error(exc))
            return False
        return True
