"""Self-dealing detection for purchases and trade offers.

UUID comparison is case-insensitive.
"""

from src.mk_common.errors import SelfOfferError, SelfPurchaseError


def is_same_user(user_a: str, user_b: str) -> bool:
    return str(user_a).lower() == str(user_b).lower()


def check_not_own_listing(buyer_id: str, seller_id: str) -> None:
    """Raise SelfPurchaseError if the buyer is the listing's seller."""
    if is_same_user(buyer_id, seller_id):
        raise SelfPurchaseError()


def check_not_own_trade(offerer_id: str, trade_owner_id: str) -> None:
    """Raise SelfOfferError if the offer targets the offerer's own trade."""
    if is_same_user(offerer_id, trade_owner_id):
        raise SelfOfferError()
