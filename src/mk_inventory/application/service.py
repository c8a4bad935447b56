"""InventoryService — privacy-gated inventory reads and external sync."""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_common.errors import ItemNotFoundError, PrivacyRestrictedError
from src.mk_common.identifiers import ensure_uuid
from src.mk_common.transaction import atomic, lock_scope
from src.mk_inventory.application.schemas import InventoryResponse, ItemResponse, SyncResult
from src.mk_inventory.domain.repository import ItemRepositoryProtocol
from src.mk_inventory.infrastructure.persistence import ItemRepository
from src.mk_privacy.application.service import PrivacyService

logger = logging.getLogger(__name__)


class InventoryService:
    def __init__(
        self,
        repo: ItemRepositoryProtocol | None = None,
        privacy: PrivacyService | None = None,
    ) -> None:
        self._repo: ItemRepositoryProtocol = repo or ItemRepository()
        self._privacy = privacy or PrivacyService()

    async def get_user_inventory(
        self, db: AsyncSession, viewer_id: str | None, owner_id: str
    ) -> InventoryResponse:
        owner_id = ensure_uuid(owner_id, "owner_id")
        decision = await self._privacy.can_view_inventory(db, viewer_id, owner_id)
        if not decision.allowed:
            raise PrivacyRestrictedError(decision.reason or "This inventory is not visible")
        items = await self._repo.list_by_owner(db, owner_id)
        return InventoryResponse(
            owner_id=owner_id, items=[ItemResponse.from_domain(i) for i in items]
        )

    async def get_item(
        self, db: AsyncSession, item_id: str, viewer_id: str | None
    ) -> ItemResponse:
        item_id = ensure_uuid(item_id, "item_id")
        item = await self._repo.get_item(db, item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        decision = await self._privacy.can_view_inventory(db, viewer_id, item.owner_id)
        if not decision.allowed:
            raise PrivacyRestrictedError(decision.reason or "This item is not visible")
        return ItemResponse.from_domain(item)

    async def sync_inventory(
        self, db: AsyncSession, user_id: str, items: list[dict[str, Any]]
    ) -> SyncResult:
        """Insert items the engine has not seen yet; known external ids are skipped."""
        user_id = ensure_uuid(user_id, "user_id")
        synced = 0
        async with atomic(db):
            await lock_scope(db, "inventory", user_id)
            for data in items:
                if await self._repo.insert_item(db, user_id, data) is not None:
                    synced += 1

        logger.info("Inventory synced: user=%s new=%d total=%d", user_id, synced, len(items))
        return SyncResult(synced_count=synced, skipped_count=len(items) - synced)
