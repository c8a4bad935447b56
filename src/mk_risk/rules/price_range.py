from decimal import Decimal

from config.settings import settings
from src.mk_common.errors import InvalidPriceError
from src.mk_common.money import cents_to_display, dollars_to_cents, parse_decimal_amount


def validate_listing_price(price: Decimal | str | int | float) -> int:
    """Return the price in cents, or raise InvalidPriceError.

    Accepts at most 2 decimal places and requires
    MIN_PRICE_CENTS <= price <= MAX_PRICE_CENTS.
    """
    try:
        cents = dollars_to_cents(parse_decimal_amount(price))
    except ValueError as exc:
        raise InvalidPriceError(str(exc)) from exc
    if not (settings.MIN_PRICE_CENTS <= cents <= settings.MAX_PRICE_CENTS):
        raise InvalidPriceError(
            f"{cents_to_display(cents)} out of range "
            f"[{cents_to_display(settings.MIN_PRICE_CENTS)}, "
            f"{cents_to_display(settings.MAX_PRICE_CENTS)}]"
        )
    return cents
