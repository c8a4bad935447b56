"""Pydantic schemas for quota usage and policy limits."""

from pydantic import BaseModel

from src.mk_common.money import cents_to_display


class QuotaUsageResponse(BaseModel):
    user_id: str
    active_listings: int
    max_active_listings: int
    active_trades: int
    max_active_trades: int
    daily_spent_cents: int
    daily_limit_cents: int
    daily_remaining_cents: int
    daily_remaining_display: str


class PolicyLimitsResponse(BaseModel):
    min_price_cents: int
    max_price_cents: int
    max_price_display: str
    max_active_listings: int
    max_active_trades: int
    max_offers_per_trade: int
    daily_purchase_limit_cents: int
    daily_purchase_limit_display: str
    commission_bps: int
    trade_expiry_days: int

    @classmethod
    def from_limits(
        cls,
        min_price: int,
        max_price: int,
        max_listings: int,
        max_trades: int,
        max_offers: int,
        daily_limit: int,
        commission_bps: int,
        trade_expiry_days: int,
    ) -> "PolicyLimitsResponse":
        return cls(
            min_price_cents=min_price,
            max_price_cents=max_price,
            max_price_display=cents_to_display(max_price),
            max_active_listings=max_listings,
            max_active_trades=max_trades,
            max_offers_per_trade=max_offers,
            daily_purchase_limit_cents=daily_limit,
            daily_purchase_limit_display=cents_to_display(daily_limit),
            commission_bps=commission_bps,
            trade_expiry_days=trade_expiry_days,
        )
