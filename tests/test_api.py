import json
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from finance_tracker.api.routes.transactions import stream_transactions
from finance_tracker.errors import StorageError
from finance_tracker.main import app
from finance_tracker.models import ExtractionResult
from finance_tracker.services.pipeline import MessagePipeline
from finance_tracker.storage.local import LocalTransactionStore

client = TestClient(app)


@contextmanager
def _swap_state(**values: Any) -> Iterator[None]:
    originals = {name: getattr(app.state, name, None) for name in values}
    present = {name for name in values if hasattr(app.state, name)}
    for name, value in values.items():
        setattr(app.state, name, value)
    try:
        yield
    finally:
        for name in values:
            if name in present:
                setattr(app.state, name, originals[name])
            else:
                delattr(app.state, name)


@pytest.fixture
def store(tmp_path) -> LocalTransactionStore:
    return LocalTransactionStore(data_path=str(tmp_path / "transactions.json"))


@pytest.fixture
def notifier() -> AsyncMock:
    mock = AsyncMock()
    mock.notify.return_value = True
    return mock


@pytest.fixture
def install(store: LocalTransactionStore, notifier: AsyncMock, make_extractor):
    """Wire a pipeline around the given extraction result into the app."""
    with ExitStack() as stack:

        def _install(result: ExtractionResult) -> MessagePipeline:
            pipeline = MessagePipeline(
                extractor=make_extractor(result),
                store=store,
                notifier=notifier,
            )
            stack.enter_context(_swap_state(pipeline=pipeline, store=store))
            return pipeline

        yield _install


def _webhook(body: str = "Gastei 45 reais com Uber agora pouco", **payload: Any) -> dict:
    return {"event": "message", "payload": {"body": body, "from": "5511999@c.us", "type": "chat", **payload}}


def test_health() -> None:
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_webhook_saves_and_confirms(install, store, notifier, uber_candidate) -> None:
    install(ExtractionResult.matched(uber_candidate))

    response = client.post("/api/webhook/whatsapp", json=_webhook())

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "saved"
    assert data["transaction_id"]
    assert notifier.notify.await_count == 1


def test_webhook_ignores_non_financial_text(install, store, notifier) -> None:
    install(ExtractionResult.not_financial())

    response = client.post("/api/webhook/whatsapp", json=_webhook("Bom dia!"))

    assert response.status_code == 200
    assert response.json()["status"] == "not_financial"
    assert store._records == []
    notifier.notify.assert_not_called()


@pytest.mark.parametrize(
    "body",
    [
        {"event": "session.status", "payload": {"status": "WORKING"}},
        {"event": "message", "payload": {"body": "", "type": "ptt", "from": "x@c.us"}},
        ["not", "a", "dict"],
    ],
)
def test_webhook_acknowledges_ignored_events(install, body: Any) -> None:
    install(ExtractionResult.not_financial())

    response = client.post("/api/webhook/whatsapp", json=body)

    assert response.status_code == 200
    assert response.json()["status"] == "ignored"


def test_webhook_storage_failure_still_acknowledged(install, store, uber_candidate, monkeypatch) -> None:
    install(ExtractionResult.matched(uber_candidate))
    monkeypatch.setattr(store, "_insert", AsyncMock(side_effect=StorageError("db down")))

    response = client.post("/api/webhook/whatsapp", json=_webhook())

    assert response.status_code == 200
    assert response.json()["status"] == "failed"


def test_webhook_invalid_json(install) -> None:
    install(ExtractionResult.not_financial())

    response = client.post(
        "/api/webhook/whatsapp",
        content=b"{broken",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400


def test_webhook_unhandled_error_returns_500() -> None:
    pipeline = MagicMock()
    pipeline.handle_event = AsyncMock(side_effect=RuntimeError("boom"))
    with _swap_state(pipeline=pipeline):
        response = client.post("/api/webhook/whatsapp", json=_webhook())

    assert response.status_code == 500


def test_simulate_success(install, uber_candidate) -> None:
    install(ExtractionResult.matched(uber_candidate))

    response = client.post("/api/simulate", json={"text": "Gastei 45 reais com Uber agora pouco"})

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["transaction"]["amount"] == 45
    assert data["transaction"]["type"] == "expense"
    assert data["transaction"]["source_identifier"] == "Simulador"
    assert "error" not in data


@pytest.mark.parametrize(
    ("result", "text", "status_code", "error"),
    [
        (ExtractionResult.not_financial(), "Bom dia!", 400, "Not a financial transaction"),
        (ExtractionResult.unavailable(), "Gastei 10", 503, "Extraction service unavailable"),
        (ExtractionResult.not_financial(), "   ", 400, "Text is required"),
    ],
)
def test_simulate_failures(install, result, text: str, status_code: int, error: str) -> None:
    install(result)

    response = client.post("/api/simulate", json={"text": text})

    assert response.status_code == status_code
    assert response.json() == {"success": False, "error": error}


def test_simulate_storage_error(install, store, uber_candidate, monkeypatch) -> None:
    install(ExtractionResult.matched(uber_candidate))
    monkeypatch.setattr(store, "_insert", AsyncMock(side_effect=StorageError("db down")))

    response = client.post("/api/simulate", json={"text": "Gastei 45"})

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "db down"}


def test_transactions_and_summary(install, uber_candidate) -> None:
    install(ExtractionResult.matched(uber_candidate))
    client.post("/api/simulate", json={"text": "Gastei 45"})
    client.post("/api/simulate", json={"text": "Gastei 45 de novo"})

    listed = client.get("/api/transactions").json()
    assert [tx["raw_text"] for tx in listed] == ["Gastei 45 de novo", "Gastei 45"]

    summary = client.get("/api/summary").json()
    assert summary["total_expenses"] == 90
    assert summary["balance"] == -90
    assert summary["expenses_by_category"] == [{"category": "transporte", "total": 90}]


@pytest.mark.anyio
async def test_stream_pushes_inserts_and_releases_listener(store, uber_candidate) -> None:
    request = MagicMock()
    request.is_disconnected = AsyncMock(return_value=False)

    response = await stream_transactions(request, store)
    assert response.media_type == "text/event-stream"
    assert response.headers["cache-control"] == "no-cache"
    assert len(store.feed) == 1

    chunks = response.body_iterator
    saved = await store.insert(uber_candidate, raw_text="Gastei 45", source_identifier="5511@c.us")
    chunk = await chunks.__anext__()

    assert chunk.startswith("data: ")
    assert chunk.endswith("\n\n")
    pushed = json.loads(chunk[len("data: "):])
    assert pushed["id"] == saved.id
    assert pushed["amount"] == 45

    await chunks.aclose()
    assert len(store.feed) == 0


@pytest.mark.anyio
async def test_stream_stops_when_client_disconnects(store) -> None:
    request = MagicMock()
    request.is_disconnected = AsyncMock(return_value=True)

    response = await stream_transactions(request, store)
    chunks = [chunk async for chunk in response.body_iterator]

    assert chunks == []
    assert len(store.feed) == 0


def test_dashboard_renders(install, uber_candidate) -> None:
    install(ExtractionResult.matched(uber_candidate))
    client.post("/api/simulate", json={"text": "Gastei 45"})

    response = client.get("/")

    assert response.status_code == 200
    assert "Corrida de Uber" in response.text
    assert "R$ 45,00" in response.text


def test_status_endpoint() -> None:
    aggregator = MagicMock()
    aggregator.report = AsyncMock(return_value={
        "supabase": True,
        "gemini": False,
        "waha": False,
        "env": {"supabase": True, "gemini": True, "waha": False},
        "states": {"supabase": "connected", "gemini": "unreachable", "waha": "not_configured"},
    })
    with _swap_state(status=aggregator):
        response = client.get("/api/status")

    assert response.status_code == 200
    assert response.json()["states"]["gemini"] == "unreachable"
