import itertools
import os
from typing import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

# Use test settings
os.environ.setdefault("MONGODB_DB_NAME", "imaginer_test")
os.environ.setdefault("SECRET_KEY", "test-secret-key-min-32-characters-long")
os.environ.setdefault("PAYMENT_WEBHOOK_SECRET", "whsec_payments_test")
os.environ.setdefault("AUTH_WEBHOOK_SECRET", "whsec_auth_test")


@pytest_asyncio.fixture
async def db():
    from imaginer.db.init import init_db
    client = await init_db(AsyncMongoMockClient())
    yield client
    await client.drop_database(os.environ["MONGODB_DB_NAME"])


@pytest_asyncio.fixture
async def make_user(db):
    from imaginer.models.user import User
    from imaginer.services import ledger
    from imaginer.services.users import UserProfile, create_user

    counter = itertools.count(1)

    async def _make(balance: int | None = None, auth_id: str | None = None) -> User:
        n = next(counter)
        user = await create_user(
            UserProfile(
                auth_id=auth_id or f"user_test_{n}",
                email=f"user{n}@example.com",
                username=f"user{n}",
            )
        )
        if balance is not None and balance != user.credit_balance:
            await ledger.adjust_balance(user.id, balance - user.credit_balance)
            user = await User.get(user.id)
        return user

    return _make


@pytest_asyncio.fixture
async def client(db) -> AsyncGenerator[AsyncClient, None]:
    from imaginer.main import app
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()
