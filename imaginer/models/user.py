from datetime import datetime

from beanie import Document, Indexed
from pydantic import Field


class User(Document):
    """Account synced from the auth provider.

    `credit_balance` and `applied_credit_keys` belong to the ledger and are only
    written through `imaginer.services.ledger`.
    """
    id: int
    auth_id: Indexed(str, unique=True)
    email: str
    username: str = ""
    photo: str = ""
    first_name: str | None = None
    last_name: str | None = None
    plan_id: int = 1
    credit_balance: int = Field(default=0, ge=0)
    applied_credit_keys: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "users"
