"""Listing status transitions.

Active is the only non-terminal status; Sold and Cancelled are final.
"""

from src.mk_common.enums import ListingStatus
from src.mk_common.errors import InvalidTransitionError

LISTING_TRANSITIONS: dict[ListingStatus, frozenset[ListingStatus]] = {
    ListingStatus.ACTIVE: frozenset({ListingStatus.SOLD, ListingStatus.CANCELLED}),
    ListingStatus.SOLD: frozenset(),
    ListingStatus.CANCELLED: frozenset(),
}


def check_listing_transition(current: str, target: ListingStatus) -> None:
    allowed = LISTING_TRANSITIONS.get(ListingStatus(current), frozenset())
    if target not in allowed:
        raise InvalidTransitionError("Listing", current, target.value)
