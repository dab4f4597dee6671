from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request

from finance_tracker.api.dependencies import get_pipeline
from finance_tracker.api.schemas import WebhookResponse
from finance_tracker.logger import get_logger
from finance_tracker.services.pipeline import MessagePipeline

logger = get_logger(__name__)

router = APIRouter()


@router.post("/api/webhook/whatsapp", response_model=WebhookResponse, response_model_exclude_none=True)
async def whatsapp_webhook(
    request: Request,
    pipeline: Annotated[MessagePipeline, Depends(get_pipeline)],
) -> WebhookResponse:
    try:
        payload = await request.json()
    except Exception as exc:
        logger.warning("[WEBHOOK] Received invalid JSON payload.")
        raise HTTPException(status_code=400, detail="Invalid JSON payload") from exc

    event_name = payload.get("event") if isinstance(payload, dict) else None
    logger.info("[WEBHOOK] WAHA event received: %s.", event_name or "<none>")

    try:
        outcome = await pipeline.handle_event(payload)
    except Exception as exc:
        logger.exception("[WEBHOOK] Unhandled error while processing event %s.", event_name)
        raise HTTPException(status_code=500, detail="Webhook processing failed") from exc

    return WebhookResponse(
        status=outcome.status.value,
        reason=outcome.reason,
        transaction_id=outcome.transaction.id if outcome.transaction else None,
    )
