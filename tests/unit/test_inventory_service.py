"""Tests for InventoryService and the item eligibility rules."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.mk_common.errors import (
    InvalidIdentifierError,
    ItemLockedError,
    ItemNotFoundError,
    ItemNotMarketableError,
    ItemNotOwnedError,
    ItemNotTradeableError,
    PrivacyRestrictedError,
)
from src.mk_inventory.application.schemas import InventoryResponse, SyncResult
from src.mk_inventory.application.service import InventoryService
from src.mk_inventory.domain.models import Item
from src.mk_inventory.domain.rules import check_can_list, check_can_trade
from src.mk_privacy.domain.models import AccessDecision

OWNER = "22222222-2222-4222-8222-222222222222"
VIEWER = "11111111-1111-4111-8111-111111111111"
ITEM_ID = "44444444-4444-4444-8444-444444444444"


def _make_item(**overrides: object) -> Item:
    defaults: dict[str, object] = {
        "id": ITEM_ID,
        "owner_id": OWNER,
        "external_item_id": "ext-1",
        "name": "Karambit | Fade",
    }
    defaults.update(overrides)
    return Item(**defaults)  # type: ignore[arg-type]


def _make_service(allowed: bool = True) -> tuple[InventoryService, AsyncMock, MagicMock]:
    repo = AsyncMock()
    privacy = MagicMock()
    privacy.can_view_inventory = AsyncMock(
        return_value=AccessDecision(allowed, None if allowed else "This inventory is private.")
    )
    return InventoryService(repo=repo, privacy=privacy), repo, privacy


class TestItemRules:
    def test_can_list_valid(self) -> None:
        item = _make_item()
        assert check_can_list(item, ITEM_ID, OWNER) is item

    def test_missing(self) -> None:
        with pytest.raises(ItemNotFoundError):
            check_can_list(None, ITEM_ID, OWNER)

    def test_not_owner(self) -> None:
        with pytest.raises(ItemNotOwnedError):
            check_can_trade(_make_item(), ITEM_ID, VIEWER)

    def test_locked(self) -> None:
        with pytest.raises(ItemLockedError):
            check_can_list(_make_item(is_locked=True), ITEM_ID, OWNER)

    def test_not_marketable(self) -> None:
        with pytest.raises(ItemNotMarketableError):
            check_can_list(_make_item(is_marketable=False), ITEM_ID, OWNER)

    def test_untradeable_can_still_be_listed(self) -> None:
        item = _make_item(is_tradeable=False)
        check_can_list(item, ITEM_ID, OWNER)
        with pytest.raises(ItemNotTradeableError):
            check_can_trade(item, ITEM_ID, OWNER)


class TestGetUserInventory:
    async def test_public_inventory(self) -> None:
        svc, repo, _ = _make_service()
        repo.list_by_owner.return_value = [_make_item()]
        result = await svc.get_user_inventory(MagicMock(), VIEWER, OWNER)
        assert isinstance(result, InventoryResponse)
        assert len(result.items) == 1
        assert result.items[0].name == "Karambit | Fade"

    async def test_private_inventory_raises(self) -> None:
        svc, repo, _ = _make_service(allowed=False)
        with pytest.raises(PrivacyRestrictedError, match="private"):
            await svc.get_user_inventory(MagicMock(), VIEWER, OWNER)
        repo.list_by_owner.assert_not_awaited()

    async def test_invalid_owner_id(self) -> None:
        svc, _, privacy = _make_service()
        with pytest.raises(InvalidIdentifierError):
            await svc.get_user_inventory(MagicMock(), VIEWER, "not-a-uuid")
        privacy.can_view_inventory.assert_not_awaited()


class TestGetItem:
    async def test_found(self) -> None:
        svc, repo, _ = _make_service()
        repo.get_item.return_value = _make_item()
        result = await svc.get_item(MagicMock(), ITEM_ID, None)
        assert result.id == ITEM_ID

    async def test_not_found(self) -> None:
        svc, repo, _ = _make_service()
        repo.get_item.return_value = None
        with pytest.raises(ItemNotFoundError):
            await svc.get_item(MagicMock(), ITEM_ID, VIEWER)

    async def test_gated_by_owner_privacy(self) -> None:
        svc, repo, privacy = _make_service(allowed=False)
        repo.get_item.return_value = _make_item()
        with pytest.raises(PrivacyRestrictedError):
            await svc.get_item(MagicMock(), ITEM_ID, VIEWER)
        privacy.can_view_inventory.assert_awaited_once()


class TestSyncInventory:
    async def test_counts_new_and_skipped(self) -> None:
        svc, repo, _ = _make_service()
        repo.insert_item.side_effect = [_make_item(), None, _make_item(id="x")]
        db = AsyncMock()
        items = [{"external_item_id": f"ext-{n}"} for n in range(3)]
        result = await svc.sync_inventory(db, OWNER, items)
        assert isinstance(result, SyncResult)
        assert result.synced_count == 2
        assert result.skipped_count == 1
        db.commit.assert_awaited_once()

    async def test_failure_rolls_back(self) -> None:
        svc, repo, _ = _make_service()
        repo.insert_item.side_effect = RuntimeError("db down")
        db = AsyncMock()
        with pytest.raises(RuntimeError):
            await svc.sync_inventory(db, OWNER, [{"external_item_id": "ext-1"}])
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()
