from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from finance_tracker.api.dependencies import get_pipeline
from finance_tracker.api.schemas import SimulateRequest, SimulateResponse
from finance_tracker.errors import StorageError
from finance_tracker.logger import get_logger
from finance_tracker.services.pipeline import MessagePipeline, OutcomeStatus

logger = get_logger(__name__)

router = APIRouter()


def _failure(status_code: int, message: str) -> JSONResponse:
    body = SimulateResponse(success=False, error=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@router.post("/api/simulate", response_model=SimulateResponse, response_model_exclude_none=True)
async def simulate_message(
    req: SimulateRequest,
    pipeline: Annotated[MessagePipeline, Depends(get_pipeline)],
) -> SimulateResponse | JSONResponse:
    text = req.text.strip()
    if not text:
        return _failure(400, "Text is required")

    try:
        outcome = await pipeline.simulate(text)
    except StorageError as exc:
        logger.error("[SIMULATE] Could not save transaction: %s", exc)
        return _failure(500, str(exc))

    if outcome.status is OutcomeStatus.UNAVAILABLE:
        return _failure(503, "Extraction service unavailable")
    if outcome.status is not OutcomeStatus.SAVED:
        return _failure(400, "Not a financial transaction")

    logger.info("[SIMULATE] Saved transaction %s.", outcome.transaction.id)
    return SimulateResponse(success=True, transaction=outcome.transaction)
