"""ItemRepositoryProtocol — structural interface for item persistence.

Lock/transfer methods must be called inside the caller's atomic scope.
"""

from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_inventory.domain.models import Item


class ItemRepositoryProtocol(Protocol):
    async def get_item(self, db: AsyncSession, item_id: str) -> Item | None: ...

    async def lock_items(self, db: AsyncSession, item_ids: list[str]) -> dict[str, Item]: ...

    async def list_by_owner(self, db: AsyncSession, owner_id: str) -> list[Item]: ...

    async def insert_item(
        self, db: AsyncSession, owner_id: str, data: dict[str, Any]
    ) -> Item | None: ...

    async def set_locked(self, db: AsyncSession, item_id: str, locked: bool) -> None: ...

    async def transfer(self, db: AsyncSession, item_id: str, new_owner_id: str) -> None: ...
