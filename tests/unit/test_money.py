"""Tests for mk_common.money."""

from decimal import Decimal

import pytest

from src.mk_common.money import (
    calculate_commission,
    cents_to_decimal,
    cents_to_display,
    dollars_to_cents,
    parse_decimal_amount,
)


class TestParseDecimalAmount:
    @pytest.mark.parametrize("value", ["10", "10.5", "10.50", "0.01", Decimal("2000.00"), 7])
    def test_accepts_up_to_two_decimals(self, value: object) -> None:
        assert isinstance(parse_decimal_amount(value), Decimal)  # type: ignore[arg-type]

    def test_trailing_zeros_do_not_count(self) -> None:
        assert parse_decimal_amount("10.500") == Decimal("10.5")

    @pytest.mark.parametrize("value", ["10.505", "0.001"])
    def test_rejects_more_than_two_decimals(self, value: str) -> None:
        with pytest.raises(ValueError, match="decimal places"):
            parse_decimal_amount(value)

    @pytest.mark.parametrize("value", ["abc", "", "NaN", "Infinity"])
    def test_rejects_non_numbers(self, value: str) -> None:
        with pytest.raises(ValueError):
            parse_decimal_amount(value)

    @pytest.mark.parametrize(
        "value", ["1e30", "99999999999999999999999999999", 1e30, "-1E+40", "1000000000000"]
    )
    def test_rejects_out_of_range_magnitude(self, value: object) -> None:
        with pytest.raises(ValueError, match="out of range"):
            parse_decimal_amount(value)  # type: ignore[arg-type]

    def test_largest_accepted_magnitude(self) -> None:
        assert parse_decimal_amount("999999999999.99") == Decimal("999999999999.99")

    def test_rejects_digits_beyond_context_precision(self) -> None:
        with pytest.raises(ValueError, match="decimal places"):
            parse_decimal_amount("1.0000000000000000000000000001")


class TestConversions:
    def test_dollars_to_cents(self) -> None:
        assert dollars_to_cents(Decimal("10.5")) == 1050
        assert dollars_to_cents(Decimal("0.01")) == 1
        assert dollars_to_cents(Decimal("2000")) == 200000

    def test_dollars_to_cents_overflow_is_value_error(self) -> None:
        with pytest.raises(ValueError, match="out of range"):
            dollars_to_cents(Decimal("1e30"))

    def test_cents_to_decimal(self) -> None:
        assert cents_to_decimal(1050) == Decimal("10.50")

    def test_cents_to_display(self) -> None:
        assert cents_to_display(6500) == "$65.00"
        assert cents_to_display(123450) == "$1,234.50"
        assert cents_to_display(-1200) == "-$12.00"
        assert cents_to_display(0) == "$0.00"


class TestCommission:
    def test_zero_bps_is_free(self) -> None:
        assert calculate_commission(1500, 0) == 0

    def test_ceiling_division(self) -> None:
        # 1 cent at 5% is 0.05 cents -> rounds up to 1
        assert calculate_commission(1, 500) == 1
        assert calculate_commission(1500, 500) == 75
        assert calculate_commission(1999, 250) == 50

    def test_never_exceeds_amount(self) -> None:
        assert calculate_commission(10, 20000) == 10
