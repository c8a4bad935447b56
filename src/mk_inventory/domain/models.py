"""Inventory domain model — pure dataclass, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Item:
    """A digital good owned by exactly one user.

    is_locked is True iff the item backs an Active listing, a Pendiente trade
    or a Pendiente offer; a locked item cannot be listed, traded or offered.
    """

    id: str
    owner_id: str
    external_item_id: str
    name: str | None = None
    is_tradeable: bool = True
    is_marketable: bool = True
    is_locked: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None
