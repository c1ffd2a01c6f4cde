import os
import time
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import jwt
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

# The app reads settings at import time; requests use the per-test database below
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from app.api.deps import get_usage_ledger
from app.core.config import settings
from app.core.db import get_db
from app.core.security import compute_proxy_signature
from app.main import app
from app.models import Base
from app.services.analytics_service import AnalyticsAggregator, AnalyticsEventStore
from app.services.recommendation_service import RecommendationService
from app.services.usage_ledger import UsageLedger

SHOP = "acme.myshopify.com"
OTHER_SHOP = "globex.myshopify.com"


class FakeClock:
    """Controllable replacement for utc_now."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now


@pytest.fixture
def clock(monkeypatch) -> FakeClock:
    fake = FakeClock(datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc))
    monkeypatch.setattr(RecommendationService, "clock", staticmethod(fake))
    monkeypatch.setattr(AnalyticsEventStore, "clock", staticmethod(fake))
    monkeypatch.setattr(AnalyticsAggregator, "clock", staticmethod(fake))
    return fake


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """
    A file-backed SQLite database per test.

    Separate connections see each other's commits, which the concurrency
    tests rely on.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", future=True)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def ledger(clock) -> UsageLedger:
    return UsageLedger(cycle_days=30, clock=clock)


@pytest_asyncio.fixture
async def client(session_factory, ledger) -> AsyncGenerator[AsyncClient, None]:
    """
    Yield an AsyncClient with the app and overridden DB and ledger dependencies.
    Every request gets its own session, as in production.
    """

    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_usage_ledger] = lambda: ledger

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def make_session_token(shop: str = SHOP, secret: str = None, **claims) -> str:
    """Session token shaped like the ones the embedded admin sends."""
    issued = int(time.time()) - 5
    payload = {
        "iss": f"https://{shop}/admin",
        "dest": f"https://{shop}",
        "aud": settings.SHOPIFY_API_KEY or "test-api-key",
        "sub": "42",
        "iat": issued,
        "nbf": issued,
        "exp": issued + 600,
    }
    payload.update(claims)
    return jwt.encode(payload, secret or settings.SHOPIFY_API_SECRET, algorithm="HS256")


def auth_headers(shop: str = SHOP) -> dict:
    return {"Authorization": f"Bearer {make_session_token(shop)}"}


def signed_proxy_params(shop: str = SHOP, **params) -> dict:
    """Query parameters as the app proxy forwards them, signature included."""
    query = {
        "shop": shop,
        "path_prefix": "/apps/curated",
        "timestamp": str(int(time.time())),
        **{key: str(value) for key, value in params.items()},
    }
    query["signature"] = compute_proxy_signature(query.items(), settings.SHOPIFY_API_SECRET)
    return query
