"""Pydantic schemas and keyset cursor utilities for mk_marketplace API."""

import base64
import json
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from src.mk_common.money import cents_to_display
from src.mk_marketplace.domain.models import Listing, PurchaseOutcome

# ---------------------------------------------------------------------------
# Keyset pagination over (created_at, id)
# ---------------------------------------------------------------------------


def listing_cursor_encode(listing: Listing) -> str:
    created = listing.created_at.isoformat() if listing.created_at else ""
    payload = json.dumps({"ts": created, "id": listing.id})
    return base64.b64encode(payload.encode()).decode()


def listing_cursor_decode(cursor: str | None) -> tuple[datetime, str] | None:
    """Decode a cursor back to (created_at, id). Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return datetime.fromisoformat(payload["ts"]), str(payload["id"])
    except Exception:
        return None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CreateListingRequest(BaseModel):
    item_id: str = Field(..., min_length=1, max_length=64)
    price: Decimal = Field(..., description="Price in dollars, max 2 decimals")


class UpdatePriceRequest(BaseModel):
    price: Decimal = Field(..., description="New price in dollars, max 2 decimals")


class PurchaseRequest(BaseModel):
    idempotency_key: str = Field(..., min_length=1, max_length=128)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ListingResponse(BaseModel):
    id: str
    item_id: str
    item_name: str | None
    seller_id: str
    price_cents: int
    price_display: str
    status: str
    buyer_id: str | None
    sold_at: str | None
    created_at: str  # ISO8601 string
    updated_at: str

    @classmethod
    def from_domain(cls, listing: Listing) -> "ListingResponse":
        return cls(
            id=listing.id,
            item_id=listing.item_id,
            item_name=listing.item_name,
            seller_id=listing.seller_id,
            price_cents=listing.price_cents,
            price_display=cents_to_display(listing.price_cents),
            status=listing.status,
            buyer_id=listing.buyer_id,
            sold_at=listing.sold_at.isoformat() if listing.sold_at else None,
            created_at=listing.created_at.isoformat() if listing.created_at else "",
            updated_at=listing.updated_at.isoformat() if listing.updated_at else "",
        )


class ListingPageResponse(BaseModel):
    items: list[ListingResponse]
    next_cursor: str | None
    has_more: bool


class PriceUpdateResponse(BaseModel):
    listing: ListingResponse
    unchanged: bool


class PurchaseResponse(BaseModel):
    transaction_id: int
    listing_id: str
    item_id: str
    seller_id: str
    price_cents: int
    price_display: str
    commission_cents: int
    seller_receives_cents: int
    new_balance_cents: int
    new_balance_display: str
    idempotent_replay: bool

    @classmethod
    def from_outcome(cls, o: PurchaseOutcome) -> "PurchaseResponse":
        return cls(
            transaction_id=o.transaction_id,
            listing_id=o.listing_id,
            item_id=o.item_id,
            seller_id=o.seller_id,
            price_cents=o.price_cents,
            price_display=cents_to_display(o.price_cents),
            commission_cents=o.commission_cents,
            seller_receives_cents=o.seller_receives_cents,
            new_balance_cents=o.buyer_balance_cents,
            new_balance_display=cents_to_display(o.buyer_balance_cents),
            idempotent_replay=o.idempotent_replay,
        )
