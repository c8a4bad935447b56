"""Tests for mk_common.enums — values must match DB CHECK constraints."""

from src.mk_common.enums import (
    EventType,
    ListingStatus,
    OfferStatus,
    PrivacyLevel,
    ResourceClass,
    TradeStatus,
    WalletTransactionType,
)


class TestAllEnumsAreStr:
    """All enums inherit from (str, Enum) for JSON serialization."""

    def test_listing_status(self) -> None:
        assert isinstance(ListingStatus.ACTIVE, str)
        assert [s.value for s in ListingStatus] == ["Active", "Sold", "Cancelled"]

    def test_trade_status_keeps_storefront_labels(self) -> None:
        assert [s.value for s in TradeStatus] == ["Pendiente", "Completado", "Cancelado"]

    def test_offer_status(self) -> None:
        assert {s.value for s in OfferStatus} == {
            "Pendiente", "Aceptado", "Rechazado", "Cancelado",
        }

    def test_trade_and_offer_pending_share_label(self) -> None:
        assert TradeStatus.PENDING.value == OfferStatus.PENDING.value


class TestPrivacyEnums:
    def test_levels(self) -> None:
        assert {level.value for level in PrivacyLevel} == {"public", "friends", "private"}

    def test_classes(self) -> None:
        assert {c.value for c in ResourceClass} == {"inventory", "trade", "marketplace"}


class TestWalletAndEvents:
    def test_transaction_types(self) -> None:
        assert WalletTransactionType.PURCHASE == "purchase"
        assert WalletTransactionType.COMMISSION == "commission"

    def test_event_names_equal_values(self) -> None:
        for event in EventType:
            assert event.name == event.value
