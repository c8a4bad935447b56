"""QuotaRepositoryProtocol — fresh aggregate reads backing every quota check.

No counter is cached anywhere: each call re-derives its value from the
listing, trade, offer and wallet-transaction tables.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession


class QuotaRepositoryProtocol(Protocol):
    async def count_active_listings(self, db: AsyncSession, seller_id: str) -> int: ...

    async def count_active_trades(self, db: AsyncSession, offerer_id: str) -> int: ...

    async def count_pending_offers(self, db: AsyncSession, trade_id: str) -> int: ...

    async def sum_purchases_since(
        self, db: AsyncSession, buyer_id: str, since: datetime
    ) -> int: ...
