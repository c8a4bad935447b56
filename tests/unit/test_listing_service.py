"""Tests for ListingService using mocked repositories."""

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.mk_common.errors import (
    InvalidPriceError,
    ItemLockedError,
    ItemNotMarketableError,
    ListingNotActiveError,
    ListingNotFoundError,
    MaxListingsReachedError,
    NotListingSellerError,
)
from src.mk_inventory.domain.models import Item
from src.mk_marketplace.application.schemas import (
    ListingPageResponse,
    ListingResponse,
    PriceUpdateResponse,
    listing_cursor_decode,
)
from src.mk_marketplace.application.service import ListingService
from src.mk_marketplace.domain.models import Listing
from src.mk_risk.application.quota import QuotaLimits, QuotaTracker

SELLER = "22222222-2222-4222-8222-222222222222"
OTHER = "11111111-1111-4111-8111-111111111111"
ITEM_ID = "44444444-4444-4444-8444-444444444444"
LISTING_ID = "66666666-6666-4666-8666-666666666666"

_LIMITS = QuotaLimits(
    max_active_listings=10,
    max_active_trades=10,
    max_offers_per_trade=20,
    daily_purchase_limit_cents=200_000,
)


def _make_listing(**overrides: object) -> Listing:
    defaults: dict[str, object] = {
        "id": LISTING_ID,
        "item_id": ITEM_ID,
        "seller_id": SELLER,
        "price_cents": 6500,
        "status": "Active",
        "created_at": datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc),
        "updated_at": datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc),
    }
    defaults.update(overrides)
    return Listing(**defaults)  # type: ignore[arg-type]


def _make_service(active_listings: int = 0) -> tuple[ListingService, AsyncMock, AsyncMock]:
    listings = AsyncMock()
    items = AsyncMock()
    quota_repo = AsyncMock()
    quota_repo.count_active_listings.return_value = active_listings
    svc = ListingService(
        listings=listings, items=items, quota=QuotaTracker(repo=quota_repo, limits=_LIMITS)
    )
    return svc, listings, items


class TestListForSale:
    async def test_creates_listing_and_locks_item(self) -> None:
        svc, listings, items = _make_service()
        items.lock_items.return_value = {ITEM_ID: Item(ITEM_ID, SELLER, "ext-1")}
        listings.insert_listing.return_value = _make_listing()
        db = AsyncMock()

        result = await svc.list_for_sale(db, SELLER, ITEM_ID, Decimal("65.00"))

        assert isinstance(result, ListingResponse)
        assert result.price_cents == 6500
        assert result.price_display == "$65.00"
        listings.insert_listing.assert_awaited_once_with(db, ITEM_ID, SELLER, 6500)
        items.set_locked.assert_awaited_once_with(db, ITEM_ID, True)
        db.commit.assert_awaited_once()

    async def test_quota_reached_before_any_lock(self) -> None:
        svc, listings, items = _make_service(active_listings=10)
        db = AsyncMock()
        with pytest.raises(MaxListingsReachedError):
            await svc.list_for_sale(db, SELLER, ITEM_ID, "10")
        items.lock_items.assert_not_awaited()
        listings.insert_listing.assert_not_awaited()

    async def test_quota_rechecked_under_lock(self) -> None:
        listings = AsyncMock()
        items = AsyncMock()
        quota_repo = AsyncMock()
        # A concurrent listing lands between the advisory read and the lock
        quota_repo.count_active_listings.side_effect = [9, 10]
        svc = ListingService(
            listings=listings, items=items, quota=QuotaTracker(repo=quota_repo, limits=_LIMITS)
        )
        db = AsyncMock()

        with pytest.raises(MaxListingsReachedError) as exc_info:
            await svc.list_for_sale(db, SELLER, ITEM_ID, "10")

        assert exc_info.value.details == {"current": 10, "limit": 10}
        assert quota_repo.count_active_listings.await_count == 2
        items.lock_items.assert_not_awaited()
        listings.insert_listing.assert_not_awaited()
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()

    async def test_invalid_price_rejected(self) -> None:
        svc, listings, _ = _make_service()
        with pytest.raises(InvalidPriceError):
            await svc.list_for_sale(AsyncMock(), SELLER, ITEM_ID, "2000.01")
        listings.insert_listing.assert_not_awaited()

    async def test_locked_item_rolls_back(self) -> None:
        svc, listings, items = _make_service()
        items.lock_items.return_value = {ITEM_ID: Item(ITEM_ID, SELLER, "ext-1", is_locked=True)}
        db = AsyncMock()
        with pytest.raises(ItemLockedError):
            await svc.list_for_sale(db, SELLER, ITEM_ID, "10")
        listings.insert_listing.assert_not_awaited()
        db.rollback.assert_awaited_once()

    async def test_unmarketable_item(self) -> None:
        svc, _, items = _make_service()
        items.lock_items.return_value = {
            ITEM_ID: Item(ITEM_ID, SELLER, "ext-1", is_marketable=False)
        }
        with pytest.raises(ItemNotMarketableError):
            await svc.list_for_sale(AsyncMock(), SELLER, ITEM_ID, "10")


class TestCancelListing:
    async def test_cancel_unlocks_item(self) -> None:
        svc, listings, items = _make_service()
        listings.lock_listing.return_value = _make_listing()
        listings.set_status.return_value = _make_listing(status="Cancelled")
        db = AsyncMock()

        result = await svc.cancel_listing(db, SELLER, LISTING_ID)

        assert result.status == "Cancelled"
        items.set_locked.assert_awaited_once_with(db, ITEM_ID, False)

    async def test_not_seller(self) -> None:
        svc, listings, items = _make_service()
        listings.lock_listing.return_value = _make_listing()
        with pytest.raises(NotListingSellerError):
            await svc.cancel_listing(AsyncMock(), OTHER, LISTING_ID)
        items.set_locked.assert_not_awaited()

    async def test_sold_listing_cannot_be_cancelled(self) -> None:
        svc, listings, _ = _make_service()
        listings.lock_listing.return_value = _make_listing(status="Sold")
        with pytest.raises(ListingNotActiveError):
            await svc.cancel_listing(AsyncMock(), SELLER, LISTING_ID)

    async def test_missing(self) -> None:
        svc, listings, _ = _make_service()
        listings.lock_listing.return_value = None
        with pytest.raises(ListingNotFoundError):
            await svc.cancel_listing(AsyncMock(), SELLER, LISTING_ID)


class TestUpdatePrice:
    async def test_reprice(self) -> None:
        svc, listings, _ = _make_service()
        listings.lock_listing.return_value = _make_listing()
        listings.update_price.return_value = _make_listing(price_cents=7000)
        result = await svc.update_price(AsyncMock(), SELLER, LISTING_ID, "70")
        assert isinstance(result, PriceUpdateResponse)
        assert not result.unchanged
        assert result.listing.price_cents == 7000

    async def test_same_price_is_noop(self) -> None:
        svc, listings, _ = _make_service()
        listings.lock_listing.return_value = _make_listing()
        result = await svc.update_price(AsyncMock(), SELLER, LISTING_ID, "65.00")
        assert result.unchanged
        listings.update_price.assert_not_awaited()


class TestBrowse:
    async def test_has_more_and_cursor(self) -> None:
        svc, listings, _ = _make_service()
        rows = [_make_listing(id=f"0000000{n}-0000-4000-8000-000000000000") for n in range(3)]
        listings.list_active.return_value = rows
        db = MagicMock()
        page = await svc.browse(db, None, 2)
        assert isinstance(page, ListingPageResponse)
        assert page.has_more
        assert len(page.items) == 2
        assert page.next_cursor is not None
        decoded = listing_cursor_decode(page.next_cursor)
        assert decoded is not None
        assert decoded[1] == rows[1].id
        listings.list_active.assert_awaited_once_with(db, None, 3)

    async def test_last_page(self) -> None:
        svc, listings, _ = _make_service()
        listings.list_by_seller.return_value = [_make_listing()]
        page = await svc.my_listings(MagicMock(), SELLER, "Active", None, 20)
        assert not page.has_more
        assert page.next_cursor is None

    def test_bad_cursor_starts_from_top(self) -> None:
        assert listing_cursor_decode("%%%") is None

    async def test_get_listing_not_found(self) -> None:
        svc, listings, _ = _make_service()
        listings.get_listing.return_value = None
        with pytest.raises(ListingNotFoundError):
            await svc.get_listing(MagicMock(), LISTING_ID)
