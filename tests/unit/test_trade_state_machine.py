"""Tests for trade and offer status transitions."""

import pytest

from src.mk_common.enums import ListingStatus, OfferStatus, TradeStatus
from src.mk_common.errors import InvalidTransitionError
from src.mk_marketplace.domain.state_machine import check_listing_transition
from src.mk_trade.domain.state_machine import (
    can_transition_offer,
    can_transition_trade,
    check_offer_transition,
    check_trade_transition,
)


class TestTradeTransitions:
    @pytest.mark.parametrize("target", [TradeStatus.COMPLETED, TradeStatus.CANCELLED])
    def test_pending_can_close(self, target: TradeStatus) -> None:
        assert can_transition_trade("Pendiente", target)

    @pytest.mark.parametrize("current", ["Completado", "Cancelado"])
    def test_closed_is_terminal(self, current: str) -> None:
        for target in TradeStatus:
            assert not can_transition_trade(current, target)

    def test_unknown_status(self) -> None:
        assert not can_transition_trade("Open", TradeStatus.COMPLETED)

    def test_check_raises(self) -> None:
        with pytest.raises(InvalidTransitionError):
            check_trade_transition("Completado", TradeStatus.CANCELLED)


class TestOfferTransitions:
    @pytest.mark.parametrize(
        "target", [OfferStatus.ACCEPTED, OfferStatus.REJECTED, OfferStatus.CANCELLED]
    )
    def test_pending_can_resolve(self, target: OfferStatus) -> None:
        check_offer_transition("Pendiente", target)

    def test_rejected_cannot_be_accepted(self) -> None:
        assert not can_transition_offer("Rechazado", OfferStatus.ACCEPTED)
        with pytest.raises(InvalidTransitionError):
            check_offer_transition("Rechazado", OfferStatus.ACCEPTED)


class TestListingTransitions:
    def test_active_to_sold(self) -> None:
        check_listing_transition("Active", ListingStatus.SOLD)

    def test_sold_is_final(self) -> None:
        with pytest.raises(InvalidTransitionError):
            check_listing_transition("Sold", ListingStatus.CANCELLED)
