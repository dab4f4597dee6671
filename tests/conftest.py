from collections.abc import Callable

import pytest

from finance_tracker.extraction.base import Extractor
from finance_tracker.models import ExtractionResult, TransactionCandidate, TransactionType
from finance_tracker.storage.local import LocalTransactionStore


class StaticExtractor(Extractor):
    """Returns a fixed result and records every text it was asked about."""

    def __init__(self, result: ExtractionResult, configured: bool = True, reachable: bool = True):
        self.result = result
        self._configured = configured
        self.reachable = reachable
        self.calls: list[str] = []

    @property
    def configured(self) -> bool:
        return self._configured

    def extract(self, text: str) -> ExtractionResult:
        self.calls.append(text)
        return self.result

    def ping(self) -> bool:
        return self.reachable


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def uber_candidate() -> TransactionCandidate:
    return TransactionCandidate(
        amount=45.0,
        type=TransactionType.EXPENSE,
        category="transporte",
        description="Corrida de Uber",
    )


@pytest.fixture
def make_extractor() -> Callable[..., StaticExtractor]:
    return StaticExtractor


@pytest.fixture
def local_store(tmp_path) -> LocalTransactionStore:
    return LocalTransactionStore(data_path=str(tmp_path / "transactions.json"))
