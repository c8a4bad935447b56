"""Pydantic schemas for mk_trade API."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.mk_trade.domain.models import Trade, TradeOffer


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class PostTradeRequest(BaseModel):
    item_id: str = Field(..., min_length=1, max_length=64)


class PostOfferRequest(BaseModel):
    item_id: str = Field(..., min_length=1, max_length=64)


class TradeOfferResponse(BaseModel):
    id: str
    trade_id: str
    offerer_id: str
    item_id: str
    item_name: str | None
    status: str
    created_at: str | None

    @classmethod
    def from_domain(cls, offer: TradeOffer) -> "TradeOfferResponse":
        return cls(
            id=offer.id,
            trade_id=offer.trade_id,
            offerer_id=offer.offerer_id,
            item_id=offer.item_id,
            item_name=offer.item_name,
            status=offer.status,
            created_at=_iso(offer.created_at),
        )


class TradeResponse(BaseModel):
    id: str
    item_id: str
    item_name: str | None
    offerer_id: str
    status: str
    accepted_offer_id: str | None
    receiver_id: str | None
    expires_at: str | None
    is_expired: bool
    closed_at: str | None
    created_at: str | None

    @classmethod
    def from_domain(cls, trade: Trade, now: datetime) -> "TradeResponse":
        return cls(
            id=trade.id,
            item_id=trade.item_id,
            item_name=trade.item_name,
            offerer_id=trade.offerer_id,
            status=trade.status,
            accepted_offer_id=trade.accepted_offer_id,
            receiver_id=trade.receiver_id,
            expires_at=_iso(trade.expires_at),
            is_expired=trade.is_expired(now),
            closed_at=_iso(trade.closed_at),
            created_at=_iso(trade.created_at),
        )


class TradeDetailResponse(BaseModel):
    trade: TradeResponse
    pending_offers: list[TradeOfferResponse]


class AcceptOfferResponse(BaseModel):
    trade: TradeResponse
    offer: TradeOfferResponse
    rejected_offer_ids: list[str]


class CancelTradeResponse(BaseModel):
    trade: TradeResponse
    cancelled_offer_ids: list[str]
