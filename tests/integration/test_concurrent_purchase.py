"""Concurrency tests against a real PostgreSQL: one listing, many buyers.

Pre-condition: alembic upgrade head; RUN_INTEGRATION=1.
"""

import asyncio
import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import text

from src.mk_common.database import async_session_factory
from tests.conftest import make_token
from tests.integration.conftest import seed_item, seed_wallet

pytestmark = [pytest.mark.asyncio(loop_scope="session"), pytest.mark.integration]


def _headers(user_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


async def _create_listing(client: AsyncClient, seller_id: str, price: str) -> tuple[str, str]:
    item_id = await seed_item(seller_id)
    resp = await client.post(
        "/api/v1/marketplace/listings",
        json={"item_id": item_id, "price": price},
        headers=_headers(seller_id),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]["id"], item_id


async def _balance(user_id: str) -> int:
    async with async_session_factory() as session:
        result = await session.execute(
            text("SELECT balance_cents FROM wallets WHERE user_id = :u"), {"u": user_id}
        )
        return int(result.scalar_one())


class TestSingleSale:
    async def test_only_one_buyer_wins(self, client: AsyncClient) -> None:
        seller = str(uuid.uuid4())
        buyers = [str(uuid.uuid4()) for _ in range(8)]
        for buyer in buyers:
            await seed_wallet(buyer, 10_000)
        listing_id, item_id = await _create_listing(client, seller, "65.00")

        responses = await asyncio.gather(*[
            client.post(
                f"/api/v1/marketplace/listings/{listing_id}/purchase",
                json={"idempotency_key": f"race-{buyer}"},
                headers=_headers(buyer),
            )
            for buyer in buyers
        ])

        winners = [r for r in responses if r.status_code == 200]
        losers = [r for r in responses if r.status_code != 200]
        assert len(winners) == 1
        assert all(r.status_code == 409 for r in losers)
        assert all(
            r.json()["reason"] in ("LISTING_NOT_AVAILABLE", "CONFLICT") for r in losers
        )

        assert await _balance(seller) == 6500
        spent = [10_000 - await _balance(b) for b in buyers]
        assert sorted(spent) == [0] * 7 + [6500]

        resp = await client.get(f"/api/v1/marketplace/listings/{listing_id}")
        assert resp.json()["data"]["status"] == "Sold"


class TestIdempotentRetry:
    async def test_retry_is_replayed(self, client: AsyncClient) -> None:
        seller = str(uuid.uuid4())
        buyer = str(uuid.uuid4())
        await seed_wallet(buyer, 10_000)
        listing_id, _ = await _create_listing(client, seller, "20.00")
        url = f"/api/v1/marketplace/listings/{listing_id}/purchase"
        body = {"idempotency_key": f"retry-{buyer}"}

        first = await client.post(url, json=body, headers=_headers(buyer))
        second = await client.post(url, json=body, headers=_headers(buyer))

        assert first.status_code == 200
        assert second.status_code == 200
        assert second.json()["data"]["idempotent_replay"] is True
        assert second.json()["data"]["transaction_id"] == first.json()["data"]["transaction_id"]
        assert await _balance(buyer) == 8000


class TestListingQuota:
    async def test_eleventh_listing_rejected(self, client: AsyncClient) -> None:
        seller = str(uuid.uuid4())
        for _ in range(10):
            await _create_listing(client, seller, "1.00")
        item_id = await seed_item(seller)
        resp = await client.post(
            "/api/v1/marketplace/listings",
            json={"item_id": item_id, "price": "1.00"},
            headers=_headers(seller),
        )
        assert resp.status_code == 422
        assert resp.json()["reason"] == "MAX_LISTINGS_REACHED"
