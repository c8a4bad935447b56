"""Trade and offer status transitions.

Trade:  Pendiente -> Completado | Cancelado
Offer:  Pendiente -> Aceptado | Rechazado | Cancelado
Every non-Pendiente status is terminal.
"""

from src.mk_common.enums import OfferStatus, TradeStatus
from src.mk_common.errors import InvalidTransitionError

TRADE_TRANSITIONS: dict[TradeStatus, frozenset[TradeStatus]] = {
    TradeStatus.PENDING: frozenset({TradeStatus.COMPLETED, TradeStatus.CANCELLED}),
    TradeStatus.COMPLETED: frozenset(),
    TradeStatus.CANCELLED: frozenset(),
}

OFFER_TRANSITIONS: dict[OfferStatus, frozenset[OfferStatus]] = {
    OfferStatus.PENDING: frozenset(
        {OfferStatus.ACCEPTED, OfferStatus.REJECTED, OfferStatus.CANCELLED}
    ),
    OfferStatus.ACCEPTED: frozenset(),
    OfferStatus.REJECTED: frozenset(),
    OfferStatus.CANCELLED: frozenset(),
}


def can_transition_trade(current: str, target: TradeStatus) -> bool:
    try:
        state = TradeStatus(current)
    except ValueError:
        return False
    return target in TRADE_TRANSITIONS[state]


def can_transition_offer(current: str, target: OfferStatus) -> bool:
    try:
        state = OfferStatus(current)
    except ValueError:
        return False
    return target in OFFER_TRANSITIONS[state]


def check_trade_transition(current: str, target: TradeStatus) -> None:
    if not can_transition_trade(current, target):
        raise InvalidTransitionError("Trade", current, target.value)


def check_offer_transition(current: str, target: OfferStatus) -> None:
    if not can_transition_offer(current, target):
        raise InvalidTransitionError("Trade offer", current, target.value)
