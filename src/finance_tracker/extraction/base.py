from abc import ABC, abstractmethod

from finance_tracker.models import ExtractionResult


class Extractor(ABC):
    @property
    @abstractmethod
    def configured(self) -> bool:
        """Whether the backend has the credentials it needs."""

    @abstractmethod
    def extract(self, text: str) -> ExtractionResult:
        """Turn free text into a transaction candidate. Must not raise."""

    @abstractmethod
    def ping(self) -> bool:
        """Check that the backend is reachable."""
