import os
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from finance_tracker.api.dependencies import get_store
from finance_tracker.domain.formatting import TYPE_LABELS, format_brl
from finance_tracker.domain.summary import summarize
from finance_tracker.errors import StorageError
from finance_tracker.logger import get_logger
from finance_tracker.models import Transaction
from finance_tracker.storage.base import TransactionStore

logger = get_logger(__name__)

router = APIRouter()

RECENT_LIMIT = 50

templates_dir = os.path.abspath(
    os.path.join(os.path.dirname(__file__), "..", "..", "web", "templates")
)
templates = Jinja2Templates(directory=templates_dir)
templates.env.filters["brl"] = format_brl
templates.env.globals["type_labels"] = {key.value: label for key, label in TYPE_LABELS.items()}


@router.get("/", response_class=HTMLResponse)
async def dashboard(
    request: Request,
    store: Annotated[TransactionStore, Depends(get_store)],
) -> HTMLResponse:
    transactions: list[Transaction] = []
    error = None
    try:
        transactions = await store.list()
    except StorageError as exc:
        logger.error("[DASHBOARD] Could not load transactions: %s", exc)
        error = "Não foi possível carregar as transações."

    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "stats": summarize(transactions),
            "transactions": transactions[:RECENT_LIMIT],
            "store_name": store.name,
            "error": error,
        },
    )
