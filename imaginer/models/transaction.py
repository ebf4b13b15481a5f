from datetime import datetime
from typing import Literal

from beanie import Document, Indexed
from pydantic import Field

TransactionStatus = Literal["pending", "credited", "orphaned"]


class Transaction(Document):
    """Completed payment. One row per external payment id; never deleted."""
    id: int
    external_payment_id: Indexed(str, unique=True)
    amount: float
    plan: str | None = None
    credits_granted: int = Field(ge=0)
    buyer_id: int | None = None  # nulled when the buyer account is deleted
    status: TransactionStatus = "pending"
    created_at: datetime = Field(default_factory=datetime.utcnow)
    credited_at: datetime | None = None

    class Settings:
        name = "transactions"
        indexes = [
            [("buyer_id", 1), ("created_at", -1)],
            [("status", 1), ("created_at", 1)],
        ]
