"""Integration-test fixtures.

Pre-condition: PostgreSQL + Redis running and `alembic upgrade head` applied.
Collected only when RUN_INTEGRATION=1.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool and Redis pool (both created at import time)
remain valid across the entire test session.
"""

import os
import uuid
from collections.abc import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text

from src.main import app
from src.mk_common.database import async_session_factory

if os.environ.get("RUN_INTEGRATION") != "1":
    collect_ignore_glob = ["test_*.py"]

_INSERT_WALLET_SQL = text("""
    INSERT INTO wallets (user_id, balance_cents)
    VALUES (:user_id, :balance)
    ON CONFLICT (user_id) DO UPDATE SET balance_cents = EXCLUDED.balance_cents
""")

_INSERT_ITEM_SQL = text("""
    INSERT INTO items (owner_id, external_item_id, name)
    VALUES (:owner_id, :external_item_id, :name)
    RETURNING id
""")


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Session-scoped async HTTP client — keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def seed_wallet(user_id: str, balance_cents: int) -> None:
    async with async_session_factory() as session:
        await session.execute(_INSERT_WALLET_SQL, {"user_id": user_id, "balance": balance_cents})
        await session.commit()


async def seed_item(owner_id: str, name: str = "Test item") -> str:
    async with async_session_factory() as session:
        result = await session.execute(
            _INSERT_ITEM_SQL,
            {"owner_id": owner_id, "external_item_id": f"it-{uuid.uuid4().hex}", "name": name},
        )
        item_id = str(result.scalar_one())
        await session.commit()
    return item_id
