import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from finance_tracker.api.routes import pages, simulate, status, transactions, webhook
from finance_tracker.core import settings
from finance_tracker.extraction.gemini import build_extractor
from finance_tracker.integration.waha import WahaClient
from finance_tracker.logger import get_logger, setup_logging
from finance_tracker.services.notifier import Notifier
from finance_tracker.services.pipeline import MessagePipeline
from finance_tracker.services.status import StatusAggregator
from finance_tracker.storage import build_store

logger = get_logger(__name__)


def create_app() -> FastAPI:
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Initializing services...")
        settings.log_environment()

        extractor = build_extractor()
        store = build_store(settings.DATA_DIR)
        waha = WahaClient()
        if not waha.configured:
            logger.info("WAHA_API_URL not set. WhatsApp confirmations will be skipped.")

        app.state.store = store
        app.state.pipeline = MessagePipeline(
            extractor=extractor,
            store=store,
            notifier=Notifier(waha),
        )
        app.state.status = StatusAggregator(store=store, extractor=extractor, waha=waha)

        logger.info("Services initialized.")
        yield
        logger.info("Service shutting down.")
        await store.aclose()
        await waha.aclose()

    app = FastAPI(title="WhatsApp Finance Tracker", lifespan=lifespan)

    static_dir = os.path.join(os.path.dirname(__file__), "web", "static")
    app.mount("/static", StaticFiles(directory=static_dir), name="static")

    app.include_router(status.router)
    app.include_router(webhook.router)
    app.include_router(simulate.router)
    app.include_router(transactions.router)
    app.include_router(pages.router)

    return app


app = create_app()
