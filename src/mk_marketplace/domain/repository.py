"""ListingRepositoryProtocol — structural interface for listing persistence.

lock_listing / mark_sold / set_status / update_price must run inside the
caller's atomic scope.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_marketplace.domain.models import Listing


class ListingRepositoryProtocol(Protocol):
    async def get_listing(self, db: AsyncSession, listing_id: str) -> Listing | None: ...

    async def lock_listing(self, db: AsyncSession, listing_id: str) -> Listing | None: ...

    async def insert_listing(
        self, db: AsyncSession, item_id: str, seller_id: str, price_cents: int
    ) -> Listing: ...

    async def mark_sold(
        self, db: AsyncSession, listing_id: str, buyer_id: str, commission_cents: int
    ) -> Listing | None: ...

    async def set_status(self, db: AsyncSession, listing_id: str, status: str) -> Listing: ...

    async def update_price(
        self, db: AsyncSession, listing_id: str, price_cents: int
    ) -> Listing: ...

    async def list_active(
        self,
        db: AsyncSession,
        cursor: tuple[datetime, str] | None,
        limit: int,
    ) -> list[Listing]: ...

    async def list_by_seller(
        self,
        db: AsyncSession,
        seller_id: str,
        status: str | None,
        cursor: tuple[datetime, str] | None,
        limit: int,
    ) -> list[Listing]: ...
