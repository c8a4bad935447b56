"""Marketplace domain models — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Listing:
    """An offer to sell one item at a fixed price (integer cents).

    Status moves Active -> Sold or Active -> Cancelled and never back.
    buyer_id / commission_cents / sold_at are set only on Sold.
    """

    id: str
    item_id: str
    seller_id: str
    price_cents: int
    status: str
    buyer_id: str | None = None
    commission_cents: int = 0
    sold_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    item_name: str | None = None


@dataclass
class PurchaseOutcome:
    transaction_id: int
    listing_id: str
    item_id: str
    seller_id: str
    price_cents: int
    commission_cents: int
    seller_receives_cents: int
    buyer_balance_cents: int
    idempotent_replay: bool = False
