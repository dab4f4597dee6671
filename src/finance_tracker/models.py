from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class TransactionCandidate(BaseModel):
    """Extraction output that passed validation but is not stored yet."""

    amount: float = Field(gt=0, allow_inf_nan=False)
    type: TransactionType
    category: str = Field(min_length=1)
    description: str = Field(min_length=1)

    @field_validator("category", "description", mode="before")
    @classmethod
    def _strip_text(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value


class Transaction(TransactionCandidate):
    id: str
    created_at: datetime
    raw_text: Optional[str] = None
    source_identifier: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: object) -> object:
        # Supabase hands back integer or uuid keys depending on the schema.
        if isinstance(value, int):
            return str(value)
        return value


class ExtractionStatus(str, Enum):
    MATCHED = "matched"
    NOT_FINANCIAL = "not_financial"
    SERVICE_UNAVAILABLE = "service_unavailable"


class ExtractionResult(BaseModel):
    status: ExtractionStatus
    candidate: Optional[TransactionCandidate] = None
    detail: Optional[str] = None

    @classmethod
    def matched(cls, candidate: TransactionCandidate) -> "ExtractionResult":
        return cls(status=ExtractionStatus.MATCHED, candidate=candidate)

    @classmethod
    def not_financial(cls, detail: str | None = None) -> "ExtractionResult":
        return cls(status=ExtractionStatus.NOT_FINANCIAL, detail=detail)

    @classmethod
    def unavailable(cls, detail: str | None = None) -> "ExtractionResult":
        return cls(status=ExtractionStatus.SERVICE_UNAVAILABLE, detail=detail)


class CategoryTotal(BaseModel):
    category: str
    total: float


class DashboardStats(BaseModel):
    total_income: float = 0.0
    total_expenses: float = 0.0
    balance: float = 0.0
    transaction_count: int = 0
    expenses_by_category: list[CategoryTotal] = Field(default_factory=list)
