from fastapi import HTTPException, Request

from finance_tracker.services.pipeline import MessagePipeline
from finance_tracker.services.status import StatusAggregator
from finance_tracker.storage.base import TransactionStore


def get_pipeline(request: Request) -> MessagePipeline:
    pipeline = getattr(request.app.state, "pipeline", None)
    if not pipeline:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return pipeline


def get_store(request: Request) -> TransactionStore:
    store = getattr(request.app.state, "store", None)
    if not store:
        raise HTTPException(status_code=500, detail="Store not initialized")
    return store


def get_status_aggregator(request: Request) -> StatusAggregator:
    aggregator = getattr(request.app.state, "status", None)
    if not aggregator:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return aggregator
