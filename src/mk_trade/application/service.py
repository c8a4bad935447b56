"""TradeService — trade negotiation state machine.

Each mutation is one `atomic(db)` scope. Lock order:
  per-user advisory lock (post_trade) -> trade row -> offer rows (by id)
  -> item rows (by id)

Accepting an offer swaps the two items, closes the trade as Completado and
auto-rejects every other pending offer on it, unlocking their items.
Cancelling a trade cascades Cancelado to its pending offers.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.mk_common.datetime_utils import days_from_now, utc_now
from src.mk_common.enums import EventType, OfferStatus, TradeStatus
from src.mk_common.errors import (
    ConflictError,
    DuplicateOfferError,
    NotOfferOwnerError,
    NotTradeOwnerError,
    OfferNotFoundError,
    OfferNotPendingError,
    PrivacyRestrictedError,
    TradeExpiredError,
    TradeNotFoundError,
    TradeNotPendingError,
)
from src.mk_common.events import write_event
from src.mk_common.identifiers import ensure_uuid
from src.mk_common.transaction import atomic, lock_scope
from src.mk_inventory.domain.repository import ItemRepositoryProtocol
from src.mk_inventory.domain.rules import check_can_trade
from src.mk_inventory.infrastructure.persistence import ItemRepository
from src.mk_privacy.application.service import PrivacyService
from src.mk_risk.application.quota import QuotaTracker
from src.mk_risk.rules.self_dealing import check_not_own_trade
from src.mk_trade.application.schemas import (
    AcceptOfferResponse,
    CancelTradeResponse,
    TradeDetailResponse,
    TradeOfferResponse,
    TradeResponse,
)
from src.mk_trade.domain.models import Trade, TradeOffer
from src.mk_trade.domain.repository import TradeRepositoryProtocol
from src.mk_trade.domain.state_machine import check_offer_transition, check_trade_transition
from src.mk_trade.infrastructure.persistence import TradeRepository

logger = logging.getLogger(__name__)


def _require_pending_trade(trade: Trade | None, trade_id: str) -> Trade:
    if trade is None:
        raise TradeNotFoundError(trade_id)
    if trade.status != TradeStatus.PENDING.value:
        raise TradeNotPendingError(trade_id, trade.status)
    return trade


def _require_open_trade(trade: Trade | None, trade_id: str) -> Trade:
    """Pending and not past expires_at."""
    trade = _require_pending_trade(trade, trade_id)
    if trade.is_expired(utc_now()):
        raise TradeExpiredError(trade_id)
    return trade


def _require_pending_offer(offer: TradeOffer | None, offer_id: str) -> TradeOffer:
    if offer is None:
        raise OfferNotFoundError(offer_id)
    if offer.status != OfferStatus.PENDING.value:
        raise OfferNotPendingError(offer_id, offer.status)
    return offer


class TradeService:
    def __init__(
        self,
        repo: TradeRepositoryProtocol | None = None,
        items: ItemRepositoryProtocol | None = None,
        quota: QuotaTracker | None = None,
        privacy: PrivacyService | None = None,
    ) -> None:
        self._repo: TradeRepositoryProtocol = repo or TradeRepository()
        self._items: ItemRepositoryProtocol = items or ItemRepository()
        self._quota = quota or QuotaTracker()
        self._privacy = privacy or PrivacyService()

    # ------------------------------------------------------------------
    # Trades
    # ------------------------------------------------------------------

    async def post_trade(self, db: AsyncSession, offerer_id: str, item_id: str) -> TradeResponse:
        offerer_id = ensure_uuid(offerer_id, "offerer_id")
        item_id = ensure_uuid(item_id, "item_id")

        await self._quota.check_trade_quota(db, offerer_id)

        async with atomic(db):
            await lock_scope(db, "trades", offerer_id)
            await self._quota.check_trade_quota(db, offerer_id)

            locked = await self._items.lock_items(db, [item_id])
            check_can_trade(locked.get(item_id), item_id, offerer_id)

            trade = await self._repo.insert_trade(
                db, item_id, offerer_id, days_from_now(settings.TRADE_EXPIRY_DAYS)
            )
            await self._items.set_locked(db, item_id, True)
            await write_event(
                EventType.TRADE_POSTED, "trade", trade.id, offerer_id,
                {"item_id": item_id, "expires_at": trade.expires_at}, db,
            )

        logger.info("Trade posted: id=%s offerer=%s item=%s", trade.id, offerer_id, item_id)
        return TradeResponse.from_domain(trade, utc_now())

    async def cancel_trade(
        self, db: AsyncSession, actor_id: str, trade_id: str
    ) -> CancelTradeResponse:
        actor_id = ensure_uuid(actor_id, "actor_id")
        trade_id = ensure_uuid(trade_id, "trade_id")

        async with atomic(db):
            trade = await self._repo.lock_trade(db, trade_id)
            if trade is None:
                raise TradeNotFoundError(trade_id)
            if trade.offerer_id.lower() != actor_id:
                raise NotTradeOwnerError(trade_id)
            _require_pending_trade(trade, trade_id)
            check_trade_transition(trade.status, TradeStatus.CANCELLED)

            pending = await self._repo.lock_pending_offers(db, trade_id)
            await self._items.lock_items(db, [trade.item_id] + [o.item_id for o in pending])

            for offer in pending:
                check_offer_transition(offer.status, OfferStatus.CANCELLED)
                await self._repo.set_offer_status(db, offer.id, OfferStatus.CANCELLED.value)
                await self._items.set_locked(db, offer.item_id, False)
                await write_event(
                    EventType.OFFER_CANCELLED, "trade_offer", offer.id, actor_id,
                    {"trade_id": trade_id, "item_id": offer.item_id, "cascade": True}, db,
                )

            closed = await self._repo.close_trade(
                db, trade_id, TradeStatus.CANCELLED.value, None, None
            )
            await self._items.set_locked(db, trade.item_id, False)
            await write_event(
                EventType.TRADE_CANCELLED, "trade", trade_id, actor_id,
                {"item_id": trade.item_id, "cancelled_offers": len(pending)}, db,
            )

        logger.info("Trade cancelled: id=%s offers_cancelled=%d", trade_id, len(pending))
        return CancelTradeResponse(
            trade=TradeResponse.from_domain(closed, utc_now()),
            cancelled_offer_ids=[o.id for o in pending],
        )

    # ------------------------------------------------------------------
    # Offers
    # ------------------------------------------------------------------

    async def post_offer(
        self, db: AsyncSession, offerer_id: str, trade_id: str, item_id: str
    ) -> TradeOfferResponse:
        offerer_id = ensure_uuid(offerer_id, "offerer_id")
        trade_id = ensure_uuid(trade_id, "trade_id")
        item_id = ensure_uuid(item_id, "item_id")

        # Advisory pre-checks
        trade = _require_open_trade(await self._repo.get_trade(db, trade_id), trade_id)
        check_not_own_trade(offerer_id, trade.offerer_id)
        decision = await self._privacy.can_send_trade(db, offerer_id, trade.offerer_id)
        if not decision.allowed:
            raise PrivacyRestrictedError(decision.reason or "Trades with this user are restricted")
        await self._quota.check_offer_quota(db, trade_id)

        async with atomic(db):
            trade = _require_open_trade(await self._repo.lock_trade(db, trade_id), trade_id)
            check_not_own_trade(offerer_id, trade.offerer_id)
            # Trade row lock serialises offers on this trade, so the count is exact
            await self._quota.check_offer_quota(db, trade_id)
            if await self._repo.has_pending_offer(db, trade_id, offerer_id, item_id):
                raise DuplicateOfferError(trade_id, item_id)

            locked = await self._items.lock_items(db, [item_id])
            check_can_trade(locked.get(item_id), item_id, offerer_id)

            offer = await self._repo.insert_offer(db, trade_id, offerer_id, item_id)
            await self._items.set_locked(db, item_id, True)
            await write_event(
                EventType.OFFER_POSTED, "trade_offer", offer.id, offerer_id,
                {"trade_id": trade_id, "item_id": item_id}, db,
            )

        logger.info(
            "Offer posted: id=%s trade=%s offerer=%s item=%s",
            offer.id, trade_id, offerer_id, item_id,
        )
        return TradeOfferResponse.from_domain(offer)

    async def accept_offer(
        self, db: AsyncSession, actor_id: str, offer_id: str
    ) -> AcceptOfferResponse:
        actor_id = ensure_uuid(actor_id, "actor_id")
        offer_id = ensure_uuid(offer_id, "offer_id")

        snapshot = await self._repo.get_offer(db, offer_id)
        if snapshot is None:
            raise OfferNotFoundError(offer_id)
        trade_id = snapshot.trade_id

        async with atomic(db):
            trade = await self._repo.lock_trade(db, trade_id)
            if trade is None:
                raise TradeNotFoundError(trade_id)
            if trade.offerer_id.lower() != actor_id:
                raise NotTradeOwnerError(trade_id)
            _require_open_trade(trade, trade_id)

            pending = await self._repo.lock_pending_offers(db, trade_id)
            offer = next((o for o in pending if o.id == offer_id), None)
            if offer is None:
                current = await self._repo.lock_offer(db, offer_id)
                _require_pending_offer(current, offer_id)
                raise ConflictError("Trade offer changed during acceptance, please retry")
            siblings = [o for o in pending if o.id != offer_id]

            check_trade_transition(trade.status, TradeStatus.COMPLETED)
            check_offer_transition(offer.status, OfferStatus.ACCEPTED)

            items = await self._items.lock_items(
                db, [trade.item_id] + [o.item_id for o in pending]
            )
            trade_item = items.get(trade.item_id)
            offer_item = items.get(offer.item_id)
            if trade_item is None or trade_item.owner_id.lower() != trade.offerer_id.lower():
                raise ConflictError(f"Trade item {trade.item_id} changed owner")
            if offer_item is None or offer_item.owner_id.lower() != offer.offerer_id.lower():
                raise ConflictError(f"Offered item {offer.item_id} changed owner")

            # Two-way ownership swap; transfer() also clears is_locked
            await self._items.transfer(db, trade.item_id, offer.offerer_id)
            await self._items.transfer(db, offer.item_id, trade.offerer_id)

            accepted = await self._repo.set_offer_status(db, offer_id, OfferStatus.ACCEPTED.value)
            for sibling in siblings:
                await self._repo.set_offer_status(db, sibling.id, OfferStatus.REJECTED.value)
                await self._items.set_locked(db, sibling.item_id, False)
                await write_event(
                    EventType.OFFER_REJECTED, "trade_offer", sibling.id, actor_id,
                    {"trade_id": trade_id, "item_id": sibling.item_id, "auto": True}, db,
                )

            closed = await self._repo.close_trade(
                db, trade_id, TradeStatus.COMPLETED.value, offer_id, offer.offerer_id
            )
            await write_event(
                EventType.OFFER_ACCEPTED, "trade_offer", offer_id, actor_id,
                {"trade_id": trade_id, "item_id": offer.item_id}, db,
            )
            await write_event(
                EventType.TRADE_COMPLETED, "trade", trade_id, actor_id,
                {
                    "item_id": trade.item_id,
                    "offer_id": offer_id,
                    "offered_item_id": offer.item_id,
                    "owner_id": trade.offerer_id,
                    "receiver_id": offer.offerer_id,
                },
                db,
            )

        logger.info(
            "Offer accepted: offer=%s trade=%s swapped %s<->%s, %d siblings rejected",
            offer_id, trade_id, trade.item_id, offer.item_id, len(siblings),
        )
        return AcceptOfferResponse(
            trade=TradeResponse.from_domain(closed, utc_now()),
            offer=TradeOfferResponse.from_domain(accepted),
            rejected_offer_ids=[o.id for o in siblings],
        )

    async def reject_offer(
        self, db: AsyncSession, actor_id: str, offer_id: str
    ) -> TradeOfferResponse:
        """Trade owner declines one offer; the trade stays open."""
        return await self._resolve_offer(db, actor_id, offer_id, OfferStatus.REJECTED)

    async def cancel_offer(
        self, db: AsyncSession, actor_id: str, offer_id: str
    ) -> TradeOfferResponse:
        """Offer owner withdraws their offer; the trade stays open."""
        return await self._resolve_offer(db, actor_id, offer_id, OfferStatus.CANCELLED)

    async def _resolve_offer(
        self, db: AsyncSession, actor_id: str, offer_id: str, target: OfferStatus
    ) -> TradeOfferResponse:
        actor_id = ensure_uuid(actor_id, "actor_id")
        offer_id = ensure_uuid(offer_id, "offer_id")

        snapshot = await self._repo.get_offer(db, offer_id)
        if snapshot is None:
            raise OfferNotFoundError(offer_id)

        async with atomic(db):
            trade = await self._repo.lock_trade(db, snapshot.trade_id)
            if trade is None:
                raise TradeNotFoundError(snapshot.trade_id)
            offer = await self._repo.lock_offer(db, offer_id)
            if offer is None:
                raise OfferNotFoundError(offer_id)

            if target is OfferStatus.REJECTED and trade.offerer_id.lower() != actor_id:
                raise NotTradeOwnerError(trade.id)
            if target is OfferStatus.CANCELLED and offer.offerer_id.lower() != actor_id:
                raise NotOfferOwnerError(offer_id)
            _require_pending_offer(offer, offer_id)
            check_offer_transition(offer.status, target)

            await self._items.lock_items(db, [offer.item_id])
            updated = await self._repo.set_offer_status(db, offer_id, target.value)
            await self._items.set_locked(db, offer.item_id, False)
            event = (
                EventType.OFFER_REJECTED
                if target is OfferStatus.REJECTED
                else EventType.OFFER_CANCELLED
            )
            await write_event(
                event, "trade_offer", offer_id, actor_id,
                {"trade_id": trade.id, "item_id": offer.item_id}, db,
            )

        logger.info("Offer %s: id=%s trade=%s", target.value, offer_id, trade.id)
        return TradeOfferResponse.from_domain(updated)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_active_trades(
        self, db: AsyncSession, offerer_id: str | None = None, limit: int = 50
    ) -> list[TradeResponse]:
        if offerer_id is not None:
            offerer_id = ensure_uuid(offerer_id, "offerer_id")
        trades = await self._repo.list_pending_trades(db, offerer_id, limit)
        now = utc_now()
        return [TradeResponse.from_domain(t, now) for t in trades]

    async def get_trade(self, db: AsyncSession, trade_id: str) -> TradeDetailResponse:
        trade_id = ensure_uuid(trade_id, "trade_id")
        trade = await self._repo.get_trade(db, trade_id)
        if trade is None:
            raise TradeNotFoundError(trade_id)
        offers = await self._repo.list_pending_offers(db, trade_id)
        return TradeDetailResponse(
            trade=TradeResponse.from_domain(trade, utc_now()),
            pending_offers=[TradeOfferResponse.from_domain(o) for o in offers],
        )

    async def list_offers(self, db: AsyncSession, trade_id: str) -> list[TradeOfferResponse]:
        trade_id = ensure_uuid(trade_id, "trade_id")
        offers = await self._repo.list_pending_offers(db, trade_id)
        return [TradeOfferResponse.from_domain(o) for o in offers]

    async def offers_for_item(self, db: AsyncSession, item_id: str) -> list[TradeOfferResponse]:
        item_id = ensure_uuid(item_id, "item_id")
        offers = await self._repo.list_offers_for_item(db, item_id)
        return [TradeOfferResponse.from_domain(o) for o in offers]
