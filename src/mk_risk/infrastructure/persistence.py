"""QuotaRepository — COUNT / SUM aggregates for the quota tracker."""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_common.enums import (
    ListingStatus,
    OfferStatus,
    TradeStatus,
    WalletTransactionStatus,
    WalletTransactionType,
)

_COUNT_ACTIVE_LISTINGS_SQL = text("""
    SELECT COUNT(*) FROM marketplace_listings
    WHERE seller_id = :user_id AND status = :status
""")

_COUNT_ACTIVE_TRADES_SQL = text("""
    SELECT COUNT(*) FROM trades
    WHERE offerer_id = :user_id AND status = :status
""")

_COUNT_PENDING_OFFERS_SQL = text("""
    SELECT COUNT(*) FROM trade_offers
    WHERE trade_id = :trade_id AND status = :status
""")

# Purchases are stored as negative amounts; ABS keeps the total positive
_SUM_PURCHASES_SQL = text("""
    SELECT COALESCE(SUM(ABS(amount_cents)), 0)
    FROM wallet_transactions
    WHERE user_id = :user_id
      AND tx_type = :tx_type
      AND status = :status
      AND created_at >= :since
""")


class QuotaRepository:
    async def count_active_listings(self, db: AsyncSession, seller_id: str) -> int:
        result = await db.execute(
            _COUNT_ACTIVE_LISTINGS_SQL,
            {"user_id": seller_id, "status": ListingStatus.ACTIVE.value},
        )
        return int(result.scalar_one())

    async def count_active_trades(self, db: AsyncSession, offerer_id: str) -> int:
        result = await db.execute(
            _COUNT_ACTIVE_TRADES_SQL,
            {"user_id": offerer_id, "status": TradeStatus.PENDING.value},
        )
        return int(result.scalar_one())

    async def count_pending_offers(self, db: AsyncSession, trade_id: str) -> int:
        result = await db.execute(
            _COUNT_PENDING_OFFERS_SQL,
            {"trade_id": trade_id, "status": OfferStatus.PENDING.value},
        )
        return int(result.scalar_one())

    async def sum_purchases_since(
        self, db: AsyncSession, buyer_id: str, since: datetime
    ) -> int:
        result = await db.execute(
            _SUM_PURCHASES_SQL,
            {
                "user_id": buyer_id,
                "tx_type": WalletTransactionType.PURCHASE.value,
                "status": WalletTransactionStatus.COMPLETED.value,
                "since": since,
            },
        )
        return int(result.scalar_one())
