"""ItemRepository — raw SQL over the items table."""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_common.errors import ItemNotFoundError
from src.mk_inventory.domain.models import Item

_ITEM_COLUMNS = """
    id, owner_id, external_item_id, name, is_tradeable, is_marketable,
    is_locked, created_at, updated_at
"""

_GET_ITEM_SQL = text(f"""
    SELECT {_ITEM_COLUMNS} FROM items WHERE id = CAST(:item_id AS UUID)
""")

# Rows come back ordered by id so concurrent callers lock in the same order
_LOCK_ITEMS_SQL = text(f"""
    SELECT {_ITEM_COLUMNS}
    FROM items
    WHERE id = ANY(CAST(:item_ids AS UUID[]))
    ORDER BY id
    FOR UPDATE
""")

_LIST_BY_OWNER_SQL = text(f"""
    SELECT {_ITEM_COLUMNS}
    FROM items
    WHERE owner_id = :owner_id
    ORDER BY created_at DESC, id
""")

_INSERT_ITEM_SQL = text(f"""
    INSERT INTO items (owner_id, external_item_id, name, is_tradeable, is_marketable)
    VALUES (:owner_id, :external_item_id, :name, :is_tradeable, :is_marketable)
    ON CONFLICT (external_item_id) DO NOTHING
    RETURNING {_ITEM_COLUMNS}
""")

_SET_LOCKED_SQL = text("""
    UPDATE items
    SET is_locked = :locked, updated_at = NOW()
    WHERE id = CAST(:item_id AS UUID)
    RETURNING id
""")

_TRANSFER_SQL = text("""
    UPDATE items
    SET owner_id = :new_owner_id, is_locked = FALSE, updated_at = NOW()
    WHERE id = CAST(:item_id AS UUID)
    RETURNING id
""")


def _row_to_item(row: object) -> Item:
    return Item(
        id=str(row.id),  # type: ignore[attr-defined]
        owner_id=row.owner_id,  # type: ignore[attr-defined]
        external_item_id=row.external_item_id,  # type: ignore[attr-defined]
        name=row.name,  # type: ignore[attr-defined]
        is_tradeable=row.is_tradeable,  # type: ignore[attr-defined]
        is_marketable=row.is_marketable,  # type: ignore[attr-defined]
        is_locked=row.is_locked,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


class ItemRepository:
    async def get_item(self, db: AsyncSession, item_id: str) -> Item | None:
        result = await db.execute(_GET_ITEM_SQL, {"item_id": item_id})
        row = result.fetchone()
        return _row_to_item(row) if row else None

    async def lock_items(self, db: AsyncSession, item_ids: list[str]) -> dict[str, Item]:
        result = await db.execute(_LOCK_ITEMS_SQL, {"item_ids": sorted(set(item_ids))})
        return {str(row.id): _row_to_item(row) for row in result.fetchall()}

    async def list_by_owner(self, db: AsyncSession, owner_id: str) -> list[Item]:
        result = await db.execute(_LIST_BY_OWNER_SQL, {"owner_id": owner_id})
        return [_row_to_item(row) for row in result.fetchall()]

    async def insert_item(
        self, db: AsyncSession, owner_id: str, data: dict[str, Any]
    ) -> Item | None:
        """Insert one item; returns None when the external id is already known."""
        result = await db.execute(
            _INSERT_ITEM_SQL,
            {
                "owner_id": owner_id,
                "external_item_id": data["external_item_id"],
                "name": data.get("name"),
                "is_tradeable": data.get("is_tradeable", True),
                "is_marketable": data.get("is_marketable", True),
            },
        )
        row = result.fetchone()
        return _row_to_item(row) if row else None

    async def set_locked(self, db: AsyncSession, item_id: str, locked: bool) -> None:
        result = await db.execute(_SET_LOCKED_SQL, {"item_id": item_id, "locked": locked})
        if result.fetchone() is None:
            raise ItemNotFoundError(item_id)

    async def transfer(self, db: AsyncSession, item_id: str, new_owner_id: str) -> None:
        """Reassign ownership and clear the lock in one statement."""
        result = await db.execute(
            _TRANSFER_SQL, {"item_id": item_id, "new_owner_id": new_owner_id}
        )
        if result.fetchone() is None:
            raise ItemNotFoundError(item_id)
