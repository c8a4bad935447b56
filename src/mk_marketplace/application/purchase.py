"""PurchaseService — buy an Active listing with the buyer's wallet balance.

Steps (all money and status decisions are made inside the atomic scope):
  1. Idempotency lookup: a completed purchase carrying the same key is
     replayed (same transaction id, no second debit); the same key used for
     a different buyer or listing is rejected.
  2. Advisory pre-checks outside any lock: listing exists and is Active,
     buyer is not the seller, seller's marketplace privacy admits the
     buyer, daily limit not obviously exceeded. Privacy is evaluated here
     only, before anything is mutated.
  3. atomic(db):
       lock wallets (buyer, seller[, platform]) ordered by user_id
       re-check the idempotency key
       lock listing, re-check Active + not own listing
       price := stored listing price (never the caller's)
       re-check daily limit and balance
       lock item, verify it is still owned by the seller
       listing -> Sold, item -> buyer (unlocked), debit buyer, credit seller
       write purchase / sale / commission transactions + LISTING_SOLD event

The advisory checks may pass and the authoritative ones fail under
concurrency; the latter's error is the one surfaced.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.mk_common.enums import EventType, ListingStatus, WalletTransactionType
from src.mk_common.errors import (
    AlreadyProcessedError,
    ConflictError,
    InsufficientFundsError,
    ListingNotAvailableError,
    MissingIdempotencyKeyError,
    PrivacyRestrictedError,
)
from src.mk_common.events import write_event
from src.mk_common.identifiers import ensure_uuid
from src.mk_common.money import calculate_commission
from src.mk_common.transaction import atomic
from src.mk_inventory.domain.repository import ItemRepositoryProtocol
from src.mk_inventory.infrastructure.persistence import ItemRepository
from src.mk_marketplace.application.schemas import PurchaseResponse
from src.mk_marketplace.domain.models import Listing, PurchaseOutcome
from src.mk_marketplace.domain.repository import ListingRepositoryProtocol
from src.mk_marketplace.domain.state_machine import check_listing_transition
from src.mk_marketplace.infrastructure.persistence import ListingRepository
from src.mk_privacy.application.service import PrivacyService
from src.mk_risk.application.quota import QuotaTracker
from src.mk_risk.rules.self_dealing import check_not_own_listing
from src.mk_wallet.domain.models import WalletTransaction
from src.mk_wallet.domain.repository import WalletRepositoryProtocol
from src.mk_wallet.infrastructure.persistence import WalletRepository

logger = logging.getLogger(__name__)

_REFERENCE_TYPE = "LISTING"
_MAX_KEY_LENGTH = 128


class PurchaseService:
    def __init__(
        self,
        listings: ListingRepositoryProtocol | None = None,
        items: ItemRepositoryProtocol | None = None,
        wallets: WalletRepositoryProtocol | None = None,
        quota: QuotaTracker | None = None,
        privacy: PrivacyService | None = None,
    ) -> None:
        self._listings: ListingRepositoryProtocol = listings or ListingRepository()
        self._items: ItemRepositoryProtocol = items or ItemRepository()
        self._wallets: WalletRepositoryProtocol = wallets or WalletRepository()
        self._quota = quota or QuotaTracker()
        self._privacy = privacy or PrivacyService()

    async def purchase(
        self,
        db: AsyncSession,
        buyer_id: str,
        listing_id: str,
        idempotency_key: str | None,
    ) -> PurchaseResponse:
        buyer_id = ensure_uuid(buyer_id, "buyer_id")
        listing_id = ensure_uuid(listing_id, "listing_id")
        if not idempotency_key or len(idempotency_key) > _MAX_KEY_LENGTH:
            raise MissingIdempotencyKeyError()

        # Step 1: Idempotency lookup (committed transactions are immutable)
        previous = await self._wallets.get_transaction_by_idempotency_key(db, idempotency_key)
        if previous is not None:
            return await self._replay(db, previous, buyer_id, listing_id, idempotency_key)

        # Step 2: Advisory pre-checks
        listing = await self._listings.get_listing(db, listing_id)
        if listing is None or listing.status != ListingStatus.ACTIVE.value:
            raise ListingNotAvailableError()
        check_not_own_listing(buyer_id, listing.seller_id)

        decision = await self._privacy.can_purchase_from(db, buyer_id, listing.seller_id)
        if not decision.allowed:
            raise PrivacyRestrictedError(
                decision.reason or "Purchases from this seller are restricted"
            )

        await self._quota.check_daily_purchase(db, buyer_id, listing.price_cents)

        # Step 3: Authoritative procedure
        seller_id = listing.seller_id
        commission_bps = settings.MARKETPLACE_COMMISSION_BPS
        platform_id = settings.PLATFORM_USER_ID
        wallet_ids = [buyer_id, seller_id]
        if commission_bps > 0:
            wallet_ids.append(platform_id)

        async with atomic(db):
            await self._wallets.ensure_wallets(db, wallet_ids)
            wallets = await self._wallets.lock_wallets(db, wallet_ids)

            # A concurrent request with the same key may have committed meanwhile;
            # the buyer's wallet lock serialises it against this one
            previous = await self._wallets.get_transaction_by_idempotency_key(
                db, idempotency_key
            )
            if previous is not None:
                return await self._replay(db, previous, buyer_id, listing_id, idempotency_key)

            locked = await self._listings.lock_listing(db, listing_id)
            if locked is None or locked.status != ListingStatus.ACTIVE.value:
                logger.warning(
                    "Listing %s no longer available under lock (buyer=%s)", listing_id, buyer_id
                )
                raise ListingNotAvailableError()
            if locked.seller_id != seller_id:
                raise ConflictError("Listing changed during purchase, please retry")
            check_not_own_listing(buyer_id, locked.seller_id)
            check_listing_transition(locked.status, ListingStatus.SOLD)

            price = locked.price_cents
            await self._quota.check_daily_purchase(db, buyer_id, price)

            buyer_wallet = wallets[buyer_id]
            if buyer_wallet.balance_cents < price:
                raise InsufficientFundsError(price, buyer_wallet.balance_cents)

            items = await self._items.lock_items(db, [locked.item_id])
            item = items.get(locked.item_id)
            if item is None or item.owner_id.lower() != seller_id.lower():
                logger.warning(
                    "Listing %s item %s is not owned by seller %s", listing_id,
                    locked.item_id, seller_id,
                )
                raise ListingNotAvailableError()

            commission = calculate_commission(price, commission_bps)
            seller_receives = price - commission

            sold = await self._listings.mark_sold(db, listing_id, buyer_id, commission)
            if sold is None:
                raise ListingNotAvailableError()
            await self._items.transfer(db, locked.item_id, buyer_id)

            buyer_after = await self._wallets.debit(db, buyer_id, price)
            seller_after = await self._wallets.credit(db, seller_id, seller_receives)

            purchase_tx = await self._wallets.insert_transaction(
                db,
                user_id=buyer_id,
                tx_type=WalletTransactionType.PURCHASE.value,
                amount=-price,
                balance_after=buyer_after.balance_cents,
                idempotency_key=idempotency_key,
                reference_type=_REFERENCE_TYPE,
                reference_id=listing_id,
                description=f"Purchase of {item.name or item.external_item_id}",
            )
            await self._wallets.insert_transaction(
                db,
                user_id=seller_id,
                tx_type=WalletTransactionType.SALE.value,
                amount=seller_receives,
                balance_after=seller_after.balance_cents,
                idempotency_key=None,
                reference_type=_REFERENCE_TYPE,
                reference_id=listing_id,
                description=f"Sale of {item.name or item.external_item_id}",
            )
            if commission > 0:
                platform_after = await self._wallets.credit(db, platform_id, commission)
                await self._wallets.insert_transaction(
                    db,
                    user_id=platform_id,
                    tx_type=WalletTransactionType.COMMISSION.value,
                    amount=commission,
                    balance_after=platform_after.balance_cents,
                    idempotency_key=None,
                    reference_type=_REFERENCE_TYPE,
                    reference_id=listing_id,
                    description="Marketplace commission",
                )

            await write_event(
                EventType.LISTING_SOLD,
                "listing",
                listing_id,
                buyer_id,
                {
                    "item_id": locked.item_id,
                    "seller_id": seller_id,
                    "buyer_id": buyer_id,
                    "price_cents": price,
                    "commission_cents": commission,
                    "transaction_id": purchase_tx.id,
                },
                db,
            )

        logger.info(
            "Listing sold: id=%s buyer=%s seller=%s price=%d commission=%d tx=%d",
            listing_id, buyer_id, seller_id, price, commission, purchase_tx.id,
        )
        return PurchaseResponse.from_outcome(
            PurchaseOutcome(
                transaction_id=purchase_tx.id,
                listing_id=listing_id,
                item_id=locked.item_id,
                seller_id=seller_id,
                price_cents=price,
                commission_cents=commission,
                seller_receives_cents=seller_receives,
                buyer_balance_cents=buyer_after.balance_cents,
            )
        )

    async def _replay(
        self,
        db: AsyncSession,
        previous: WalletTransaction,
        buyer_id: str,
        listing_id: str,
        idempotency_key: str,
    ) -> PurchaseResponse:
        """Rebuild the original result for a repeated purchase request."""
        if (
            previous.user_id != buyer_id
            or previous.tx_type != WalletTransactionType.PURCHASE.value
            or previous.reference_id != listing_id
        ):
            raise AlreadyProcessedError(idempotency_key)

        listing: Listing | None = await self._listings.get_listing(db, listing_id)
        if listing is None:
            raise ListingNotAvailableError()

        price = abs(previous.amount_cents)
        logger.info(
            "Purchase idempotency hit: key=%s buyer=%s tx=%d",
            idempotency_key, buyer_id, previous.id,
        )
        return PurchaseResponse.from_outcome(
            PurchaseOutcome(
                transaction_id=previous.id,
                listing_id=listing_id,
                item_id=listing.item_id,
                seller_id=listing.seller_id,
                price_cents=price,
                commission_cents=listing.commission_cents,
                seller_receives_cents=price - listing.commission_cents,
                buyer_balance_cents=previous.balance_after_cents,
                idempotent_replay=True,
            )
        )
