"""Integer-cents money utilities.

All prices, amounts, and balances below the API boundary use int (cents).
Decimal is only used to parse caller input, never for arithmetic on balances.
"""

from decimal import Decimal, InvalidOperation

_CENT = Decimal("0.01")

# Amounts of 10**12 dollars or more are rejected before any quantize.
_MAX_ADJUSTED_EXPONENT = 11


def parse_decimal_amount(value: Decimal | str | int | float, max_decimals: int = 2) -> Decimal:
    """Parse a caller-supplied dollar amount into a Decimal.

    Raises ValueError if the value is not a finite number, is too large to
    represent in cents, or carries more than `max_decimals` fractional digits.
    """
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"not a valid number: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    if amount.adjusted() > _MAX_ADJUSTED_EXPONENT:
        raise ValueError(f"amount out of range: {value!r}")
    if amount != amount.quantize(Decimal(1).scaleb(-max_decimals)):
        raise ValueError(f"more than {max_decimals} decimal places: {value!r}")
    return amount


def dollars_to_cents(amount: Decimal) -> int:
    """Round to 2 decimals and convert: Decimal('10.5') -> 1050."""
    try:
        return int((amount.quantize(_CENT) * 100).to_integral_value())
    except InvalidOperation as exc:
        raise ValueError(f"amount out of range: {amount}") from exc


def cents_to_decimal(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(_CENT)


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 6500 -> '$65.00', -1200 -> '-$12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-${abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"${cents // 100:,}.{cents % 100:02d}"


def calculate_commission(amount_cents: int, commission_bps: int) -> int:
    """Commission with ceiling division (platform never loses a fractional cent).

    commission = ceil(amount * bps / 10000), capped at the amount itself.
    """
    if amount_cents <= 0 or commission_bps <= 0:
        return 0
    return min((amount_cents * commission_bps + 9999) // 10000, amount_cents)
