"""Trade domain models — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Trade:
    """A posting that offers one item up for item-for-item exchange.

    offerer_id is the trade owner (the user who posted it). On completion
    receiver_id holds the user whose offer was accepted.
    """

    id: str
    item_id: str
    offerer_id: str
    status: str
    accepted_offer_id: str | None = None
    receiver_id: str | None = None
    expires_at: datetime | None = None
    closed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    item_name: str | None = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now


@dataclass
class TradeOffer:
    """A proposal to exchange one of the offerer's items for a trade's item."""

    id: str
    trade_id: str
    offerer_id: str
    item_id: str
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    item_name: str | None = None
