"""Tests for PurchaseService: the single-sale purchase procedure."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from config.settings import settings
from src.mk_common.errors import (
    AlreadyProcessedError,
    DailyLimitExceededError,
    InsufficientFundsError,
    ListingNotAvailableError,
    MissingIdempotencyKeyError,
    PrivacyRestrictedError,
    SelfPurchaseError,
)
from src.mk_inventory.domain.models import Item
from src.mk_marketplace.application.purchase import PurchaseService
from src.mk_marketplace.application.schemas import PurchaseResponse
from src.mk_marketplace.domain.models import Listing
from src.mk_privacy.domain.models import AccessDecision
from src.mk_risk.application.quota import QuotaLimits, QuotaTracker
from src.mk_wallet.domain.models import Wallet, WalletTransaction

BUYER = "11111111-1111-4111-8111-111111111111"
SELLER = "22222222-2222-4222-8222-222222222222"
ITEM_ID = "44444444-4444-4444-8444-444444444444"
LISTING_ID = "66666666-6666-4666-8666-666666666666"
KEY = "purchase-key-001"

_LIMITS = QuotaLimits(
    max_active_listings=10,
    max_active_trades=10,
    max_offers_per_trade=20,
    daily_purchase_limit_cents=200_000,
)


def _make_listing(price: int = 6500, status: str = "Active", **overrides: object) -> Listing:
    return Listing(
        id=LISTING_ID,
        item_id=ITEM_ID,
        seller_id=SELLER,
        price_cents=price,
        status=status,
        **overrides,  # type: ignore[arg-type]
    )


def _make_tx(
    tx_id: int, user_id: str, amount: int, balance_after: int, **kw: object
) -> WalletTransaction:
    return WalletTransaction(
        id=tx_id,
        user_id=user_id,
        tx_type=kw.pop("tx_type", "purchase"),  # type: ignore[arg-type]
        amount_cents=amount,
        balance_after_cents=balance_after,
        status="completed",
        **kw,  # type: ignore[arg-type]
    )


class _Harness:
    """Wires PurchaseService to mocks configured for a successful purchase."""

    def __init__(
        self,
        buyer_balance: int = 10_000,
        seller_balance: int = 0,
        price: int = 6500,
        spent_today: int = 0,
        privacy_allowed: bool = True,
    ) -> None:
        self.listings = AsyncMock()
        self.items = AsyncMock()
        self.wallets = AsyncMock()
        self.quota_repo = AsyncMock()
        self.privacy = MagicMock()
        self.db = AsyncMock()

        self.listings.get_listing.return_value = _make_listing(price)
        self.listings.lock_listing.return_value = _make_listing(price)
        self.listings.mark_sold.return_value = _make_listing(price, status="Sold", buyer_id=BUYER)
        self.items.lock_items.return_value = {
            ITEM_ID: Item(ITEM_ID, SELLER, "ext-1", name="Skin", is_locked=True)
        }

        self.balances = {BUYER: buyer_balance, SELLER: seller_balance, settings.PLATFORM_USER_ID: 0}
        self.wallets.get_transaction_by_idempotency_key.return_value = None
        self.wallets.lock_wallets.side_effect = self._lock_wallets
        self.wallets.debit.side_effect = self._debit
        self.wallets.credit.side_effect = self._credit
        self.tx_ids = iter(range(100, 200))
        self.wallets.insert_transaction.side_effect = self._insert_tx

        self.quota_repo.sum_purchases_since.return_value = spent_today
        self.privacy.can_purchase_from = AsyncMock(
            return_value=AccessDecision(
                privacy_allowed,
                None if privacy_allowed else "This user has disabled marketplace purchases.",
            )
        )

        self.svc = PurchaseService(
            listings=self.listings,
            items=self.items,
            wallets=self.wallets,
            quota=QuotaTracker(repo=self.quota_repo, limits=_LIMITS),
            privacy=self.privacy,
        )

    async def _lock_wallets(self, db: object, user_ids: list[str]) -> dict[str, Wallet]:
        return {uid: Wallet(uid, self.balances[uid], 1) for uid in sorted(set(user_ids))}

    async def _debit(self, db: object, user_id: str, amount: int) -> Wallet:
        self.balances[user_id] -= amount
        return Wallet(user_id, self.balances[user_id], 2)

    async def _credit(self, db: object, user_id: str, amount: int) -> Wallet:
        self.balances[user_id] += amount
        return Wallet(user_id, self.balances[user_id], 2)

    async def _insert_tx(self, db: object, **kw: object) -> WalletTransaction:
        return _make_tx(
            next(self.tx_ids),
            kw["user_id"],  # type: ignore[arg-type]
            kw["amount"],  # type: ignore[arg-type]
            kw["balance_after"],  # type: ignore[arg-type]
            tx_type=kw["tx_type"],
            idempotency_key=kw["idempotency_key"],
            reference_id=kw["reference_id"],
        )

    async def buy(self, key: str | None = KEY) -> PurchaseResponse:
        return await self.svc.purchase(self.db, BUYER, LISTING_ID, key)


class TestPurchaseSuccess:
    async def test_single_sale(self) -> None:
        h = _Harness(buyer_balance=10_000)
        result = await h.buy()

        assert isinstance(result, PurchaseResponse)
        assert result.price_cents == 6500
        assert result.new_balance_cents == 3500
        assert result.seller_receives_cents == 6500
        assert not result.idempotent_replay
        assert h.balances[SELLER] == 6500
        h.listings.mark_sold.assert_awaited_once_with(h.db, LISTING_ID, BUYER, 0)
        h.items.transfer.assert_awaited_once_with(h.db, ITEM_ID, BUYER)
        assert h.wallets.insert_transaction.await_count == 2
        h.db.commit.assert_awaited_once()

    async def test_purchase_tx_carries_key_and_listing(self) -> None:
        h = _Harness()
        await h.buy()
        first = h.wallets.insert_transaction.await_args_list[0].kwargs
        assert first["user_id"] == BUYER
        assert first["amount"] == -6500
        assert first["idempotency_key"] == KEY
        assert first["reference_type"] == "LISTING"
        assert first["reference_id"] == LISTING_ID

    async def test_price_is_read_under_lock(self) -> None:
        h = _Harness(buyer_balance=10_000)
        # Seller repriced between the advisory read and the lock
        h.listings.get_listing.return_value = _make_listing(5000)
        h.listings.lock_listing.return_value = _make_listing(6500)
        result = await h.buy()
        assert result.price_cents == 6500
        h.wallets.debit.assert_awaited_once_with(h.db, BUYER, 6500)

    async def test_platform_wallet_untouched_without_commission(self) -> None:
        h = _Harness()
        await h.buy()
        locked_ids = h.wallets.lock_wallets.await_args.args[1]
        assert settings.PLATFORM_USER_ID not in locked_ids

    async def test_commission_split(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "MARKETPLACE_COMMISSION_BPS", 500)
        h = _Harness(buyer_balance=10_000, price=1500)
        result = await h.buy()

        assert result.commission_cents == 75
        assert result.seller_receives_cents == 1425
        assert h.balances[SELLER] == 1425
        assert h.balances[settings.PLATFORM_USER_ID] == 75
        assert h.wallets.insert_transaction.await_count == 3
        tx_types = [c.kwargs["tx_type"] for c in h.wallets.insert_transaction.await_args_list]
        assert tx_types == ["purchase", "sale", "commission"]


class TestIdempotency:
    async def test_replay_returns_original_result(self) -> None:
        h = _Harness()
        h.wallets.get_transaction_by_idempotency_key.return_value = _make_tx(
            42, BUYER, -6500, 3500, idempotency_key=KEY, reference_id=LISTING_ID
        )
        h.listings.get_listing.return_value = _make_listing(status="Sold", buyer_id=BUYER)

        result = await h.buy()

        assert result.idempotent_replay
        assert result.transaction_id == 42
        assert result.new_balance_cents == 3500
        h.wallets.lock_wallets.assert_not_awaited()
        h.wallets.debit.assert_not_awaited()

    async def test_key_reused_for_another_listing(self) -> None:
        h = _Harness()
        h.wallets.get_transaction_by_idempotency_key.return_value = _make_tx(
            42, BUYER, -6500, 3500, idempotency_key=KEY,
            reference_id="77777777-7777-4777-8777-777777777777",
        )
        with pytest.raises(AlreadyProcessedError):
            await h.buy()
        h.wallets.debit.assert_not_awaited()

    async def test_key_used_by_reload(self) -> None:
        h = _Harness()
        h.wallets.get_transaction_by_idempotency_key.return_value = _make_tx(
            7, BUYER, 1000, 1000, tx_type="reload", idempotency_key=KEY
        )
        with pytest.raises(AlreadyProcessedError):
            await h.buy()

    async def test_replay_detected_under_lock(self) -> None:
        h = _Harness()
        h.wallets.get_transaction_by_idempotency_key.side_effect = [
            None,
            _make_tx(43, BUYER, -6500, 3500, idempotency_key=KEY, reference_id=LISTING_ID),
        ]
        result = await h.buy()
        assert result.idempotent_replay
        assert result.transaction_id == 43
        h.listings.lock_listing.assert_not_awaited()
        h.wallets.debit.assert_not_awaited()

    @pytest.mark.parametrize("key", [None, "", "k" * 129])
    async def test_key_required(self, key: str | None) -> None:
        h = _Harness()
        with pytest.raises(MissingIdempotencyKeyError):
            await h.buy(key)


class TestPurchaseRejections:
    async def test_daily_limit(self) -> None:
        h = _Harness(buyer_balance=100_000, price=5000, spent_today=198_000)
        with pytest.raises(DailyLimitExceededError) as exc_info:
            await h.buy()
        assert exc_info.value.details is not None
        assert exc_info.value.details["remaining_cents"] == 2000
        h.wallets.lock_wallets.assert_not_awaited()

    async def test_daily_limit_rechecked_under_lock(self) -> None:
        h = _Harness(buyer_balance=100_000, price=2000)
        # Another purchase by the same buyer commits before the wallet lock is granted
        h.quota_repo.sum_purchases_since.side_effect = [0, 199_000]
        with pytest.raises(DailyLimitExceededError) as exc_info:
            await h.buy()
        assert exc_info.value.details is not None
        assert exc_info.value.details["spent_cents"] == 199_000
        assert h.quota_repo.sum_purchases_since.await_count == 2
        h.wallets.lock_wallets.assert_awaited_once()
        h.listings.mark_sold.assert_not_awaited()
        h.wallets.debit.assert_not_awaited()
        h.db.rollback.assert_awaited_once()
        h.db.commit.assert_not_awaited()

    async def test_privacy_blocks_before_any_lock(self) -> None:
        h = _Harness(privacy_allowed=False)
        with pytest.raises(PrivacyRestrictedError, match="disabled marketplace"):
            await h.buy()
        h.wallets.lock_wallets.assert_not_awaited()
        h.listings.mark_sold.assert_not_awaited()

    async def test_self_purchase(self) -> None:
        h = _Harness()
        h.listings.get_listing.return_value = Listing(LISTING_ID, ITEM_ID, BUYER, 6500, "Active")
        with pytest.raises(SelfPurchaseError):
            await h.buy()
        h.wallets.lock_wallets.assert_not_awaited()

    async def test_insufficient_funds_rolls_back(self) -> None:
        h = _Harness(buyer_balance=3000)
        with pytest.raises(InsufficientFundsError) as exc_info:
            await h.buy()
        assert exc_info.value.details == {"required_cents": 6500, "available_cents": 3000}
        h.listings.mark_sold.assert_not_awaited()
        h.wallets.debit.assert_not_awaited()
        h.db.rollback.assert_awaited_once()
        h.db.commit.assert_not_awaited()

    async def test_sold_before_advisory_read(self) -> None:
        h = _Harness()
        h.listings.get_listing.return_value = _make_listing(status="Sold")
        with pytest.raises(ListingNotAvailableError):
            await h.buy()
        h.wallets.lock_wallets.assert_not_awaited()

    async def test_sold_while_waiting_for_lock(self) -> None:
        h = _Harness()
        h.listings.lock_listing.return_value = _make_listing(status="Sold", buyer_id=SELLER)
        with pytest.raises(ListingNotAvailableError):
            await h.buy()
        h.wallets.debit.assert_not_awaited()
        h.items.transfer.assert_not_awaited()
        h.db.rollback.assert_awaited_once()

    async def test_item_no_longer_owned_by_seller(self) -> None:
        h = _Harness()
        h.items.lock_items.return_value = {ITEM_ID: Item(ITEM_ID, BUYER, "ext-1")}
        with pytest.raises(ListingNotAvailableError):
            await h.buy()
        h.listings.mark_sold.assert_not_awaited()

    async def test_conditional_mark_sold_loses_race(self) -> None:
        h = _Harness()
        h.listings.mark_sold.return_value = None
        with pytest.raises(ListingNotAvailableError):
            await h.buy()
        h.wallets.debit.assert_not_awaited()
