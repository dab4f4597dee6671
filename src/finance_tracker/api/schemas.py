from typing import Optional

from pydantic import BaseModel

from finance_tracker.models import Transaction


class SimulateRequest(BaseModel):
    text: str = ""


class SimulateResponse(BaseModel):
    success: bool
    transaction: Optional[Transaction] = None
    error: Optional[str] = None


class WebhookResponse(BaseModel):
    status: str
    reason: Optional[str] = None
    transaction_id: Optional[str] = None
