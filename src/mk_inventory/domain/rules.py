"""Item eligibility checks shared by listing, trade and offer creation.

Applied to the row read under FOR UPDATE inside the atomic procedure.
"""

from src.mk_common.errors import (
    ItemLockedError,
    ItemNotFoundError,
    ItemNotMarketableError,
    ItemNotOwnedError,
    ItemNotTradeableError,
)
from src.mk_inventory.domain.models import Item


def check_owned_and_unlocked(item: Item | None, item_id: str, owner_id: str) -> Item:
    if item is None:
        raise ItemNotFoundError(item_id)
    if item.owner_id.lower() != owner_id.lower():
        raise ItemNotOwnedError(item_id)
    if item.is_locked:
        raise ItemLockedError(item_id)
    return item


def check_can_list(item: Item | None, item_id: str, owner_id: str) -> Item:
    """Owned by the caller, not locked, marketable."""
    item = check_owned_and_unlocked(item, item_id, owner_id)
    if not item.is_marketable:
        raise ItemNotMarketableError(item_id)
    return item


def check_can_trade(item: Item | None, item_id: str, owner_id: str) -> Item:
    """Owned by the caller, not locked, tradeable."""
    item = check_owned_and_unlocked(item, item_id, owner_id)
    if not item.is_tradeable:
        raise ItemNotTradeableError(item_id)
    return item
