from typing import Annotated, Any

from fastapi import APIRouter, Depends

from finance_tracker.api.dependencies import get_status_aggregator
from finance_tracker.services.status import StatusAggregator

router = APIRouter()


@router.get("/api/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/api/status")
async def status(
    aggregator: Annotated[StatusAggregator, Depends(get_status_aggregator)],
) -> dict[str, Any]:
    return await aggregator.report()
