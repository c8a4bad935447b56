"""TradeRepositoryProtocol — structural interface for trade/offer persistence.

lock_* and mutating methods must run inside the caller's atomic scope.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_trade.domain.models import Trade, TradeOffer


class TradeRepositoryProtocol(Protocol):
    # trades
    async def get_trade(self, db: AsyncSession, trade_id: str) -> Trade | None: ...

    async def lock_trade(self, db: AsyncSession, trade_id: str) -> Trade | None: ...

    async def insert_trade(
        self, db: AsyncSession, item_id: str, offerer_id: str, expires_at: datetime
    ) -> Trade: ...

    async def close_trade(
        self,
        db: AsyncSession,
        trade_id: str,
        status: str,
        accepted_offer_id: str | None,
        receiver_id: str | None,
    ) -> Trade: ...

    async def list_pending_trades(
        self, db: AsyncSession, offerer_id: str | None, limit: int
    ) -> list[Trade]: ...

    # offers
    async def get_offer(self, db: AsyncSession, offer_id: str) -> TradeOffer | None: ...

    async def lock_offer(self, db: AsyncSession, offer_id: str) -> TradeOffer | None: ...

    async def lock_pending_offers(self, db: AsyncSession, trade_id: str) -> list[TradeOffer]: ...

    async def insert_offer(
        self, db: AsyncSession, trade_id: str, offerer_id: str, item_id: str
    ) -> TradeOffer: ...

    async def set_offer_status(
        self, db: AsyncSession, offer_id: str, status: str
    ) -> TradeOffer: ...

    async def has_pending_offer(
        self, db: AsyncSession, trade_id: str, offerer_id: str, item_id: str
    ) -> bool: ...

    async def list_pending_offers(self, db: AsyncSession, trade_id: str) -> list[TradeOffer]: ...

    async def list_offers_for_item(self, db: AsyncSession, item_id: str) -> list[TradeOffer]: ...
