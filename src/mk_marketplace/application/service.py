"""ListingService — listing lifecycle: create, cancel, reprice, browse.

Every mutation runs as one `atomic(db)` scope:
  re-read under FOR UPDATE -> validate -> mutate listing + item -> outbox event.

Lock order: per-seller advisory lock -> listing row -> item row.
"""

import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_common.enums import EventType, ListingStatus
from src.mk_common.errors import (
    ListingNotActiveError,
    ListingNotFoundError,
    NotListingSellerError,
)
from src.mk_common.events import write_event
from src.mk_common.identifiers import ensure_uuid
from src.mk_common.transaction import atomic, lock_scope
from src.mk_inventory.domain.repository import ItemRepositoryProtocol
from src.mk_inventory.domain.rules import check_can_list
from src.mk_inventory.infrastructure.persistence import ItemRepository
from src.mk_marketplace.application.schemas import (
    ListingPageResponse,
    ListingResponse,
    PriceUpdateResponse,
    listing_cursor_decode,
    listing_cursor_encode,
)
from src.mk_marketplace.domain.models import Listing
from src.mk_marketplace.domain.repository import ListingRepositoryProtocol
from src.mk_marketplace.domain.state_machine import check_listing_transition
from src.mk_marketplace.infrastructure.persistence import ListingRepository
from src.mk_risk.application.quota import QuotaTracker
from src.mk_risk.rules.price_range import validate_listing_price

logger = logging.getLogger(__name__)


def _check_seller_and_active(listing: Listing | None, listing_id: str, actor_id: str) -> Listing:
    if listing is None:
        raise ListingNotFoundError(listing_id)
    if listing.seller_id.lower() != actor_id.lower():
        raise NotListingSellerError(listing_id)
    if listing.status != ListingStatus.ACTIVE.value:
        raise ListingNotActiveError(listing_id, listing.status)
    return listing


class ListingService:
    def __init__(
        self,
        listings: ListingRepositoryProtocol | None = None,
        items: ItemRepositoryProtocol | None = None,
        quota: QuotaTracker | None = None,
    ) -> None:
        self._listings: ListingRepositoryProtocol = listings or ListingRepository()
        self._items: ItemRepositoryProtocol = items or ItemRepository()
        self._quota = quota or QuotaTracker()

    async def list_for_sale(
        self, db: AsyncSession, seller_id: str, item_id: str, price: Decimal | str
    ) -> ListingResponse:
        seller_id = ensure_uuid(seller_id, "seller_id")
        item_id = ensure_uuid(item_id, "item_id")
        price_cents = validate_listing_price(price)

        # Advisory pre-check: reject obvious quota violations without locking
        await self._quota.check_listing_quota(db, seller_id)

        async with atomic(db):
            await lock_scope(db, "listings", seller_id)
            await self._quota.check_listing_quota(db, seller_id)

            locked = await self._items.lock_items(db, [item_id])
            check_can_list(locked.get(item_id), item_id, seller_id)

            listing = await self._listings.insert_listing(db, item_id, seller_id, price_cents)
            await self._items.set_locked(db, item_id, True)
            await write_event(
                EventType.LISTING_CREATED,
                "listing",
                listing.id,
                seller_id,
                {"item_id": item_id, "price_cents": price_cents},
                db,
            )

        logger.info(
            "Listing created: id=%s seller=%s item=%s price=%d",
            listing.id, seller_id, item_id, price_cents,
        )
        return ListingResponse.from_domain(listing)

    async def cancel_listing(
        self, db: AsyncSession, seller_id: str, listing_id: str
    ) -> ListingResponse:
        seller_id = ensure_uuid(seller_id, "seller_id")
        listing_id = ensure_uuid(listing_id, "listing_id")

        async with atomic(db):
            listing = _check_seller_and_active(
                await self._listings.lock_listing(db, listing_id), listing_id, seller_id
            )
            check_listing_transition(listing.status, ListingStatus.CANCELLED)
            updated = await self._listings.set_status(
                db, listing_id, ListingStatus.CANCELLED.value
            )
            await self._items.lock_items(db, [listing.item_id])
            await self._items.set_locked(db, listing.item_id, False)
            await write_event(
                EventType.LISTING_CANCELLED, "listing", listing_id, seller_id,
                {"item_id": listing.item_id}, db,
            )

        logger.info("Listing cancelled: id=%s seller=%s", listing_id, seller_id)
        return ListingResponse.from_domain(updated)

    async def update_price(
        self, db: AsyncSession, seller_id: str, listing_id: str, new_price: Decimal | str
    ) -> PriceUpdateResponse:
        seller_id = ensure_uuid(seller_id, "seller_id")
        listing_id = ensure_uuid(listing_id, "listing_id")
        price_cents = validate_listing_price(new_price)

        async with atomic(db):
            listing = _check_seller_and_active(
                await self._listings.lock_listing(db, listing_id), listing_id, seller_id
            )
            if listing.price_cents == price_cents:
                # Same price: no write, updated_at untouched
                return PriceUpdateResponse(
                    listing=ListingResponse.from_domain(listing), unchanged=True
                )
            updated = await self._listings.update_price(db, listing_id, price_cents)
            await write_event(
                EventType.LISTING_REPRICED, "listing", listing_id, seller_id,
                {"old_price_cents": listing.price_cents, "new_price_cents": price_cents}, db,
            )

        logger.info(
            "Listing repriced: id=%s %d -> %d", listing_id, listing.price_cents, price_cents
        )
        return PriceUpdateResponse(listing=ListingResponse.from_domain(updated), unchanged=False)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_listing(self, db: AsyncSession, listing_id: str) -> ListingResponse:
        listing_id = ensure_uuid(listing_id, "listing_id")
        listing = await self._listings.get_listing(db, listing_id)
        if listing is None:
            raise ListingNotFoundError(listing_id)
        return ListingResponse.from_domain(listing)

    async def browse(
        self, db: AsyncSession, cursor: str | None, limit: int
    ) -> ListingPageResponse:
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        rows = await self._listings.list_active(db, listing_cursor_decode(cursor), limit + 1)
        return self._page(rows, limit)

    async def my_listings(
        self,
        db: AsyncSession,
        seller_id: str,
        status: str | None,
        cursor: str | None,
        limit: int,
    ) -> ListingPageResponse:
        seller_id = ensure_uuid(seller_id, "seller_id")
        rows = await self._listings.list_by_seller(
            db, seller_id, status, listing_cursor_decode(cursor), limit + 1
        )
        return self._page(rows, limit)

    @staticmethod
    def _page(rows: list[Listing], limit: int) -> ListingPageResponse:
        has_more = len(rows) > limit
        page = rows[:limit]
        return ListingPageResponse(
            items=[ListingResponse.from_domain(r) for r in page],
            next_cursor=listing_cursor_encode(page[-1]) if has_more and page else None,
            has_more=has_more,
        )
