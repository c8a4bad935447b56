"""Pydantic schemas for mk_inventory API."""

from pydantic import BaseModel, Field

from src.mk_inventory.domain.models import Item


class SyncItemRequest(BaseModel):
    external_item_id: str = Field(..., min_length=1, max_length=128)
    name: str | None = Field(None, max_length=255)
    is_tradeable: bool = True
    is_marketable: bool = True


class SyncInventoryRequest(BaseModel):
    items: list[SyncItemRequest] = Field(..., max_length=500)


class ItemResponse(BaseModel):
    id: str
    owner_id: str
    external_item_id: str
    name: str | None
    is_tradeable: bool
    is_marketable: bool
    is_locked: bool
    created_at: str  # ISO8601 string

    @classmethod
    def from_domain(cls, item: Item) -> "ItemResponse":
        return cls(
            id=item.id,
            owner_id=item.owner_id,
            external_item_id=item.external_item_id,
            name=item.name,
            is_tradeable=item.is_tradeable,
            is_marketable=item.is_marketable,
            is_locked=item.is_locked,
            created_at=item.created_at.isoformat() if item.created_at else "",
        )


class InventoryResponse(BaseModel):
    owner_id: str
    items: list[ItemResponse]


class SyncResult(BaseModel):
    synced_count: int
    skipped_count: int
