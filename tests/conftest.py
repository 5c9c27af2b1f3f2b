import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Settings are cached on first import; configure before importing app
os.environ.setdefault("MONGODB_DB_NAME", "loyalty_test")
os.environ.setdefault("MONGODB_TRANSACTIONS", "false")
os.environ.setdefault("SHOPIFY_API_SECRET", "test-webhook-secret")
os.environ.setdefault("ADMIN_API_TOKEN", "test-admin-token")


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory MongoDB per test, with Beanie models and unique indexes bound to it."""
    from mongomock_motor import AsyncMongoMockClient

    from app.db.init import init_db
    client = AsyncMongoMockClient()
    await init_db(client=client)
    yield client


@pytest.fixture
def no_startup_db(monkeypatch):
    """App startup must not connect to a real MongoDB; the db fixture binds Beanie instead."""
    import app.main

    async def _skip_init_db(client=None):
        return None

    monkeypatch.setattr(app.main, "init_db", _skip_init_db)


@pytest_asyncio.fixture
async def client(db, no_startup_db) -> AsyncGenerator[AsyncClient, None]:
    from app.main import app
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def admin_headers() -> dict:
    return {"X-Admin-Token": os.environ["ADMIN_API_TOKEN"]}


@pytest.fixture
def transactions_on(monkeypatch):
    from app.core.config import get_settings
    monkeypatch.setattr(get_settings(), "mongodb_transactions", True)
