"""Shared test fixtures."""

import os

# Settings() requires JWT_SECRET at import time
os.environ.setdefault("JWT_SECRET", "test-secret")

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt

from config.settings import settings
from src.main import app
from src.mk_common.database import get_db_session

BUYER_ID = "11111111-1111-4111-8111-111111111111"
SELLER_ID = "22222222-2222-4222-8222-222222222222"
THIRD_ID = "55555555-5555-4555-8555-555555555555"


def make_token(user_id: str, token_type: str = "access", minutes: int = 15) -> str:
    """Mint a token the way the storefront auth service does."""
    payload = {
        "sub": user_id,
        "type": token_type,
        "exp": datetime.now(UTC) + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


class FakeRedis:
    """In-memory subset of redis.asyncio.Redis used by the gateway."""

    def __init__(self) -> None:
        self.store: dict[str, int | str] = {}

    async def incr(self, key: str) -> int:
        value = int(self.store.get(key, 0)) + 1
        self.store[key] = value
        return value

    async def expire(self, key: str, seconds: int) -> bool:
        return key in self.store

    async def set(self, key: str, value: str, nx: bool = False, ex: int | None = None) -> bool:
        if nx and key in self.store:
            return False
        self.store[key] = value
        return True

    async def eval(self, script: str, numkeys: int, *keys_and_args: str) -> int:
        """Only the in-flight guard's GET-compare-DEL release script is supported."""
        key, token = keys_and_args[0], keys_and_args[numkeys]
        if self.store.get(key) == token:
            del self.store[key]
            return 1
        return 0


@pytest.fixture
def fake_redis(monkeypatch: pytest.MonkeyPatch) -> FakeRedis:
    redis = FakeRedis()

    async def _get_redis() -> FakeRedis:
        return redis

    monkeypatch.setattr("src.mk_gateway.middleware.rate_limit.get_redis", _get_redis)
    monkeypatch.setattr("src.mk_marketplace.api.router.get_redis", _get_redis)
    return redis


@pytest.fixture
async def client(fake_redis: FakeRedis) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client with the DB session replaced by a mock."""

    async def _db() -> AsyncGenerator[AsyncMock, None]:
        yield AsyncMock()

    app.dependency_overrides[get_db_session] = _db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Callable[[str], dict[str, str]]:
    """Build an Authorization header for a user id."""

    def _headers(user_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(user_id)}"}

    return _headers
