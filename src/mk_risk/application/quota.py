"""QuotaTracker — per-user caps and the rolling daily purchase limit.

Every check reads a fresh aggregate. Callers run each check twice: once as
an advisory pre-check outside any lock (fast rejection), and again inside
the atomic procedure after the relevant lock is held. Only the second one
is authoritative.

Limits are read from settings on every call unless explicit limits are
passed to the constructor.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.mk_common.datetime_utils import utc_day_start
from src.mk_common.errors import (
    DailyLimitExceededError,
    MaxListingsReachedError,
    MaxOffersReachedError,
    MaxTradesReachedError,
)
from src.mk_common.money import cents_to_display
from src.mk_risk.application.schemas import PolicyLimitsResponse, QuotaUsageResponse
from src.mk_risk.domain.repository import QuotaRepositoryProtocol
from src.mk_risk.infrastructure.persistence import QuotaRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuotaLimits:
    max_active_listings: int
    max_active_trades: int
    max_offers_per_trade: int
    daily_purchase_limit_cents: int

    @classmethod
    def from_settings(cls) -> "QuotaLimits":
        return cls(
            max_active_listings=settings.MAX_ACTIVE_LISTINGS,
            max_active_trades=settings.MAX_ACTIVE_TRADES,
            max_offers_per_trade=settings.MAX_OFFERS_PER_TRADE,
            daily_purchase_limit_cents=settings.DAILY_PURCHASE_LIMIT_CENTS,
        )


class QuotaTracker:
    def __init__(
        self,
        repo: QuotaRepositoryProtocol | None = None,
        limits: QuotaLimits | None = None,
    ) -> None:
        self._repo: QuotaRepositoryProtocol = repo or QuotaRepository()
        self._limits = limits

    @property
    def limits(self) -> QuotaLimits:
        return self._limits or QuotaLimits.from_settings()

    async def check_listing_quota(self, db: AsyncSession, seller_id: str) -> int:
        """Raise MaxListingsReachedError if the seller cannot open another listing."""
        limit = self.limits.max_active_listings
        current = await self._repo.count_active_listings(db, seller_id)
        if current >= limit:
            raise MaxListingsReachedError(current, limit)
        return current

    async def check_trade_quota(self, db: AsyncSession, offerer_id: str) -> int:
        """Raise MaxTradesReachedError if the user cannot post another trade."""
        limit = self.limits.max_active_trades
        current = await self._repo.count_active_trades(db, offerer_id)
        if current >= limit:
            raise MaxTradesReachedError(current, limit)
        return current

    async def check_offer_quota(self, db: AsyncSession, trade_id: str) -> int:
        """Raise MaxOffersReachedError if the trade already holds the maximum pending offers."""
        limit = self.limits.max_offers_per_trade
        current = await self._repo.count_pending_offers(db, trade_id)
        if current >= limit:
            raise MaxOffersReachedError(current, limit)
        return current

    async def check_daily_purchase(
        self, db: AsyncSession, buyer_id: str, amount_cents: int
    ) -> int:
        """Raise DailyLimitExceededError if spent_today + amount exceeds the limit.

        Returns the amount already spent since 00:00 UTC.
        """
        limit = self.limits.daily_purchase_limit_cents
        spent = await self._repo.sum_purchases_since(db, buyer_id, utc_day_start())
        if spent + amount_cents > limit:
            logger.info(
                "Daily limit hit: buyer=%s spent=%d amount=%d limit=%d",
                buyer_id, spent, amount_cents, limit,
            )
            raise DailyLimitExceededError(limit, spent)
        return spent

    async def usage(self, db: AsyncSession, user_id: str) -> QuotaUsageResponse:
        limits = self.limits
        listings = await self._repo.count_active_listings(db, user_id)
        trades = await self._repo.count_active_trades(db, user_id)
        spent = await self._repo.sum_purchases_since(db, user_id, utc_day_start())
        remaining = max(limits.daily_purchase_limit_cents - spent, 0)
        return QuotaUsageResponse(
            user_id=user_id,
            active_listings=listings,
            max_active_listings=limits.max_active_listings,
            active_trades=trades,
            max_active_trades=limits.max_active_trades,
            daily_spent_cents=spent,
            daily_limit_cents=limits.daily_purchase_limit_cents,
            daily_remaining_cents=remaining,
            daily_remaining_display=cents_to_display(remaining),
        )

    def policy(self) -> PolicyLimitsResponse:
        limits = self.limits
        return PolicyLimitsResponse.from_limits(
            min_price=settings.MIN_PRICE_CENTS,
            max_price=settings.MAX_PRICE_CENTS,
            max_listings=limits.max_active_listings,
            max_trades=limits.max_active_trades,
            max_offers=limits.max_offers_per_trade,
            daily_limit=limits.daily_purchase_limit_cents,
            commission_bps=settings.MARKETPLACE_COMMISSION_BPS,
            trade_expiry_days=settings.TRADE_EXPIRY_DAYS,
        )
