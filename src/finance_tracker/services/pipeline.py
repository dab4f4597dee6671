import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any

from finance_tracker.core import settings
from finance_tracker.domain.messages import MessageKind, normalize_event
from finance_tracker.errors import StorageError
from finance_tracker.extraction.base import Extractor
from finance_tracker.logger import get_logger
from finance_tracker.models import ExtractionResult, ExtractionStatus, Transaction
from finance_tracker.services.notifier import Notifier
from finance_tracker.storage.base import TransactionStore

logger = get_logger(__name__)


class OutcomeStatus(str, Enum):
    SAVED = "saved"
    IGNORED = "ignored"
    NOT_FINANCIAL = "not_financial"
    UNAVAILABLE = "unavailable"
    FAILED = "failed"


@dataclass(frozen=True)
class PipelineOutcome:
    status: OutcomeStatus
    transaction: Transaction | None = None
    reason: str | None = None
    notified: bool = False


_EXTRACTION_OUTCOMES = {
    ExtractionStatus.NOT_FINANCIAL: OutcomeStatus.NOT_FINANCIAL,
    ExtractionStatus.SERVICE_UNAVAILABLE: OutcomeStatus.UNAVAILABLE,
}


def _outcome_for(result: ExtractionResult) -> OutcomeStatus:
    return _EXTRACTION_OUTCOMES.get(result.status, OutcomeStatus.NOT_FINANCIAL)


class MessagePipeline:
    """Normalize -> extract -> store -> notify, run inside one request."""

    def __init__(
        self,
        extractor: Extractor,
        store: TransactionStore,
        notifier: Notifier | None = None,
    ) -> None:
        self.extractor = extractor
        self.store = store
        self.notifier = notifier

    async def extract(self, text: str) -> ExtractionResult:
        # The LLM client is synchronous; keep it off the event loop.
        return await asyncio.to_thread(self.extractor.extract, text)

    async def handle_event(self, event: Any) -> PipelineOutcome:
        message = normalize_event(event)

        if message.kind is MessageKind.VOICE:
            logger.info(
                "[WEBHOOK] Voice message from %s is not transcribed; skipping.",
                message.sender,
            )
            return PipelineOutcome(OutcomeStatus.IGNORED, reason=message.reason)

        if not message.has_text:
            logger.debug("[WEBHOOK] Ignoring event: %s.", message.reason)
            return PipelineOutcome(OutcomeStatus.IGNORED, reason=message.reason)

        result = await self.extract(message.text)
        if result.status is not ExtractionStatus.MATCHED or result.candidate is None:
            logger.info(
                "[WEBHOOK] No transaction recorded for message from %s (%s).",
                message.sender,
                result.status.value,
            )
            return PipelineOutcome(_outcome_for(result), reason=result.detail)

        try:
            transaction = await self.store.insert(
                result.candidate,
                raw_text=message.text,
                source_identifier=message.sender,
            )
        except StorageError as exc:
            logger.error("[WEBHOOK] Could not save transaction from %s: %s", message.sender, exc)
            return PipelineOutcome(OutcomeStatus.FAILED, reason=str(exc))

        notified = False
        if self.notifier is not None:
            notified = await self.notifier.notify(message.sender, transaction)
        return PipelineOutcome(OutcomeStatus.SAVED, transaction=transaction, notified=notified)

    async def simulate(self, text: str) -> PipelineOutcome:
        """Run the pipeline for dashboard input. Storage errors propagate."""
        result = await self.extract(text)
        if result.status is not ExtractionStatus.MATCHED or result.candidate is None:
            return PipelineOutcome(_outcome_for(result), reason=result.detail)

        transaction = await self.store.insert(
            result.candidate,
            raw_text=text,
            source_identifier=settings.SIMULATOR_SOURCE,
        )
        return PipelineOutcome(OutcomeStatus.SAVED, transaction=transaction)
