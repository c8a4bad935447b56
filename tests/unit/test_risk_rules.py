"""Tests for mk_risk price-range and self-dealing rules."""

from decimal import Decimal

import pytest

from src.mk_common.errors import InvalidPriceError, SelfOfferError, SelfPurchaseError
from src.mk_risk.rules.price_range import validate_listing_price
from src.mk_risk.rules.self_dealing import (
    check_not_own_listing,
    check_not_own_trade,
    is_same_user,
)

USER_A = "aaaaaaaa-aaaa-4aaa-8aaa-aaaaaaaaaaaa"
USER_B = "bbbbbbbb-bbbb-4bbb-8bbb-bbbbbbbbbbbb"


class TestPriceRange:
    def test_valid_price(self) -> None:
        assert validate_listing_price(Decimal("65.00")) == 6500

    def test_boundaries_inclusive(self) -> None:
        assert validate_listing_price("0.01") == 1
        assert validate_listing_price("2000.00") == 200_000

    @pytest.mark.parametrize("price", ["0", "0.00", "-5", "2000.01", "99999"])
    def test_out_of_range(self, price: str) -> None:
        with pytest.raises(InvalidPriceError) as exc_info:
            validate_listing_price(price)
        assert exc_info.value.reason == "INVALID_PRICE"

    def test_too_many_decimals(self) -> None:
        with pytest.raises(InvalidPriceError, match="decimal places"):
            validate_listing_price("10.505")

    def test_not_a_number(self) -> None:
        with pytest.raises(InvalidPriceError):
            validate_listing_price("ten dollars")

    @pytest.mark.parametrize("price", ["1e30", "99999999999999999999999999999", 1e30])
    def test_huge_magnitude_rejected(self, price: object) -> None:
        with pytest.raises(InvalidPriceError) as exc_info:
            validate_listing_price(price)  # type: ignore[arg-type]
        assert exc_info.value.http_status == 400


class TestSelfDealing:
    def test_same_user_case_insensitive(self) -> None:
        assert is_same_user(USER_A, USER_A.upper())
        assert not is_same_user(USER_A, USER_B)

    def test_own_listing_rejected(self) -> None:
        with pytest.raises(SelfPurchaseError):
            check_not_own_listing(USER_A, USER_A)

    def test_other_listing_allowed(self) -> None:
        check_not_own_listing(USER_A, USER_B)

    def test_own_trade_rejected(self) -> None:
        with pytest.raises(SelfOfferError):
            check_not_own_trade(USER_B, USER_B)

    def test_other_trade_allowed(self) -> None:
        check_not_own_trade(USER_A, USER_B)
