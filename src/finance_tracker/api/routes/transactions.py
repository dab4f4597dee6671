import asyncio
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse

from finance_tracker.api.dependencies import get_store
from finance_tracker.core import settings
from finance_tracker.domain.summary import summarize
from finance_tracker.errors import StorageError
from finance_tracker.logger import get_logger
from finance_tracker.models import DashboardStats, Transaction
from finance_tracker.storage.base import TransactionStore

logger = get_logger(__name__)

router = APIRouter()


async def _load(store: TransactionStore) -> list[Transaction]:
    try:
        return await store.list()
    except StorageError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@router.get("/api/transactions", response_model=list[Transaction])
async def list_transactions(
    store: Annotated[TransactionStore, Depends(get_store)],
) -> list[Transaction]:
    return await _load(store)


@router.get("/api/summary", response_model=DashboardStats)
async def get_summary(
    store: Annotated[TransactionStore, Depends(get_store)],
) -> DashboardStats:
    return summarize(await _load(store))


@router.get("/api/transactions/stream")
async def stream_transactions(
    request: Request,
    store: Annotated[TransactionStore, Depends(get_store)],
) -> StreamingResponse:
    queue: asyncio.Queue[Transaction] = asyncio.Queue()
    subscription = store.subscribe(queue.put_nowait)
    logger.debug("[STREAM] Dashboard client connected (%d listeners).", len(store.feed))

    async def generate() -> Any:
        try:
            while not await request.is_disconnected():
                try:
                    transaction = await asyncio.wait_for(
                        queue.get(),
                        timeout=settings.SSE_KEEPALIVE_SECONDS,
                    )
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
                    continue
                yield f"data: {transaction.model_dump_json()}\n\n"
        finally:
            subscription.close()
            logger.debug("[STREAM] Dashboard client disconnected.")

    return StreamingResponse(
        generate(),
        media_type="text/event-stream",
        headers=settings.SSE_HEADERS,
    )
