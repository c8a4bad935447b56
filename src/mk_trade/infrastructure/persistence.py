"""TradeRepository — raw SQL over trades and trade_offers.

Partial unique indexes back the one-pending-trade-per-item and
one-pending-offer-per-(trade, offerer, item) rules; violations surface as
IntegrityError and become ConflictError in `atomic(db)`.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_common.enums import OfferStatus, TradeStatus
from src.mk_common.errors import InternalError, OfferNotFoundError, TradeNotFoundError
from src.mk_trade.domain.models import Trade, TradeOffer

# ---------------------------------------------------------------------------
# SQL: trades
# ---------------------------------------------------------------------------

_TRADE_COLUMNS = """
    t.id, t.item_id, t.offerer_id, t.status, t.accepted_offer_id, t.receiver_id,
    t.expires_at, t.closed_at, t.created_at, t.updated_at
"""

_GET_TRADE_SQL = text(f"""
    SELECT {_TRADE_COLUMNS}, i.name AS item_name
    FROM trades t
    LEFT JOIN items i ON i.id = t.item_id
    WHERE t.id = CAST(:trade_id AS UUID)
""")

_LOCK_TRADE_SQL = text(f"""
    SELECT {_TRADE_COLUMNS}, NULL AS item_name
    FROM trades t
    WHERE t.id = CAST(:trade_id AS UUID)
    FOR UPDATE
""")

_INSERT_TRADE_SQL = text(f"""
    INSERT INTO trades AS t (item_id, offerer_id, status, expires_at)
    VALUES (CAST(:item_id AS UUID), :offerer_id, :status, :expires_at)
    RETURNING {_TRADE_COLUMNS}, NULL AS item_name
""")

_CLOSE_TRADE_SQL = text(f"""
    UPDATE trades AS t
    SET status = :status,
        accepted_offer_id = CAST(:accepted_offer_id AS UUID),
        receiver_id = :receiver_id,
        closed_at = NOW(),
        updated_at = NOW()
    WHERE t.id = CAST(:trade_id AS UUID)
    RETURNING {_TRADE_COLUMNS}, NULL AS item_name
""")

_LIST_PENDING_TRADES_SQL = text(f"""
    SELECT {_TRADE_COLUMNS}, i.name AS item_name
    FROM trades t
    LEFT JOIN items i ON i.id = t.item_id
    WHERE t.status = :pending
      AND (CAST(:offerer_id AS VARCHAR) IS NULL OR t.offerer_id = CAST(:offerer_id AS VARCHAR))
    ORDER BY t.created_at DESC, t.id DESC
    LIMIT :limit
""")

# ---------------------------------------------------------------------------
# SQL: trade_offers
# ---------------------------------------------------------------------------

_OFFER_COLUMNS = "o.id, o.trade_id, o.offerer_id, o.item_id, o.status, o.created_at, o.updated_at"

_GET_OFFER_SQL = text(f"""
    SELECT {_OFFER_COLUMNS}, i.name AS item_name
    FROM trade_offers o
    LEFT JOIN items i ON i.id = o.item_id
    WHERE o.id = CAST(:offer_id AS UUID)
""")

_LOCK_OFFER_SQL = text(f"""
    SELECT {_OFFER_COLUMNS}, NULL AS item_name
    FROM trade_offers o
    WHERE o.id = CAST(:offer_id AS UUID)
    FOR UPDATE
""")

_LOCK_PENDING_OFFERS_SQL = text(f"""
    SELECT {_OFFER_COLUMNS}, NULL AS item_name
    FROM trade_offers o
    WHERE o.trade_id = CAST(:trade_id AS UUID) AND o.status = :pending
    ORDER BY o.id
    FOR UPDATE
""")

_INSERT_OFFER_SQL = text(f"""
    INSERT INTO trade_offers AS o (trade_id, offerer_id, item_id, status)
    VALUES (CAST(:trade_id AS UUID), :offerer_id, CAST(:item_id AS UUID), :status)
    RETURNING {_OFFER_COLUMNS}, NULL AS item_name
""")

_SET_OFFER_STATUS_SQL = text(f"""
    UPDATE trade_offers AS o
    SET status = :status, updated_at = NOW()
    WHERE o.id = CAST(:offer_id AS UUID)
    RETURNING {_OFFER_COLUMNS}, NULL AS item_name
""")

_HAS_PENDING_OFFER_SQL = text("""
    SELECT 1 FROM trade_offers
    WHERE trade_id = CAST(:trade_id AS UUID)
      AND offerer_id = :offerer_id
      AND item_id = CAST(:item_id AS UUID)
      AND status = :pending
    LIMIT 1
""")

_LIST_PENDING_OFFERS_SQL = text(f"""
    SELECT {_OFFER_COLUMNS}, i.name AS item_name
    FROM trade_offers o
    LEFT JOIN items i ON i.id = o.item_id
    WHERE o.trade_id = CAST(:trade_id AS UUID) AND o.status = :pending
    ORDER BY o.created_at, o.id
""")

# Offers made with the item plus offers received on trades of the item
_LIST_OFFERS_FOR_ITEM_SQL = text(f"""
    SELECT {_OFFER_COLUMNS}, i.name AS item_name
    FROM trade_offers o
    JOIN trades t ON t.id = o.trade_id
    LEFT JOIN items i ON i.id = o.item_id
    WHERE o.status = :pending
      AND (o.item_id = CAST(:item_id AS UUID) OR t.item_id = CAST(:item_id AS UUID))
    ORDER BY o.created_at, o.id
""")


def _row_to_trade(row: object) -> Trade:
    return Trade(
        id=str(row.id),  # type: ignore[attr-defined]
        item_id=str(row.item_id),  # type: ignore[attr-defined]
        offerer_id=row.offerer_id,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        accepted_offer_id=(
            str(row.accepted_offer_id) if row.accepted_offer_id else None  # type: ignore[attr-defined]
        ),
        receiver_id=row.receiver_id,  # type: ignore[attr-defined]
        expires_at=row.expires_at,  # type: ignore[attr-defined]
        closed_at=row.closed_at,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
        item_name=row.item_name,  # type: ignore[attr-defined]
    )


def _row_to_offer(row: object) -> TradeOffer:
    return TradeOffer(
        id=str(row.id),  # type: ignore[attr-defined]
        trade_id=str(row.trade_id),  # type: ignore[attr-defined]
        offerer_id=row.offerer_id,  # type: ignore[attr-defined]
        item_id=str(row.item_id),  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
        item_name=row.item_name,  # type: ignore[attr-defined]
    )


class TradeRepository:
    # ------------------------------------------------------------------
    # trades
    # ------------------------------------------------------------------

    async def get_trade(self, db: AsyncSession, trade_id: str) -> Trade | None:
        result = await db.execute(_GET_TRADE_SQL, {"trade_id": trade_id})
        row = result.fetchone()
        return _row_to_trade(row) if row else None

    async def lock_trade(self, db: AsyncSession, trade_id: str) -> Trade | None:
        result = await db.execute(_LOCK_TRADE_SQL, {"trade_id": trade_id})
        row = result.fetchone()
        return _row_to_trade(row) if row else None

    async def insert_trade(
        self, db: AsyncSession, item_id: str, offerer_id: str, expires_at: datetime
    ) -> Trade:
        result = await db.execute(
            _INSERT_TRADE_SQL,
            {
                "item_id": item_id,
                "offerer_id": offerer_id,
                "status": TradeStatus.PENDING.value,
                "expires_at": expires_at,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Trade insert returned no rows")
        return _row_to_trade(row)

    async def close_trade(
        self,
        db: AsyncSession,
        trade_id: str,
        status: str,
        accepted_offer_id: str | None,
        receiver_id: str | None,
    ) -> Trade:
        result = await db.execute(
            _CLOSE_TRADE_SQL,
            {
                "trade_id": trade_id,
                "status": status,
                "accepted_offer_id": accepted_offer_id,
                "receiver_id": receiver_id,
            },
        )
        row = result.fetchone()
        if row is None:
            raise TradeNotFoundError(trade_id)
        return _row_to_trade(row)

    async def list_pending_trades(
        self, db: AsyncSession, offerer_id: str | None, limit: int
    ) -> list[Trade]:
        result = await db.execute(
            _LIST_PENDING_TRADES_SQL,
            {"pending": TradeStatus.PENDING.value, "offerer_id": offerer_id, "limit": limit},
        )
        return [_row_to_trade(row) for row in result.fetchall()]

    # ------------------------------------------------------------------
    # offers
    # ------------------------------------------------------------------

    async def get_offer(self, db: AsyncSession, offer_id: str) -> TradeOffer | None:
        result = await db.execute(_GET_OFFER_SQL, {"offer_id": offer_id})
        row = result.fetchone()
        return _row_to_offer(row) if row else None

    async def lock_offer(self, db: AsyncSession, offer_id: str) -> TradeOffer | None:
        result = await db.execute(_LOCK_OFFER_SQL, {"offer_id": offer_id})
        row = result.fetchone()
        return _row_to_offer(row) if row else None

    async def lock_pending_offers(self, db: AsyncSession, trade_id: str) -> list[TradeOffer]:
        result = await db.execute(
            _LOCK_PENDING_OFFERS_SQL,
            {"trade_id": trade_id, "pending": OfferStatus.PENDING.value},
        )
        return [_row_to_offer(row) for row in result.fetchall()]

    async def insert_offer(
        self, db: AsyncSession, trade_id: str, offerer_id: str, item_id: str
    ) -> TradeOffer:
        result = await db.execute(
            _INSERT_OFFER_SQL,
            {
                "trade_id": trade_id,
                "offerer_id": offerer_id,
                "item_id": item_id,
                "status": OfferStatus.PENDING.value,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Trade offer insert returned no rows")
        return _row_to_offer(row)

    async def set_offer_status(
        self, db: AsyncSession, offer_id: str, status: str
    ) -> TradeOffer:
        result = await db.execute(
            _SET_OFFER_STATUS_SQL, {"offer_id": offer_id, "status": status}
        )
        row = result.fetchone()
        if row is None:
            raise OfferNotFoundError(offer_id)
        return _row_to_offer(row)

    async def has_pending_offer(
        self, db: AsyncSession, trade_id: str, offerer_id: str, item_id: str
    ) -> bool:
        result = await db.execute(
            _HAS_PENDING_OFFER_SQL,
            {
                "trade_id": trade_id,
                "offerer_id": offerer_id,
                "item_id": item_id,
                "pending": OfferStatus.PENDING.value,
            },
        )
        return result.fetchone() is not None

    async def list_pending_offers(self, db: AsyncSession, trade_id: str) -> list[TradeOffer]:
        result = await db.execute(
            _LIST_PENDING_OFFERS_SQL,
            {"trade_id": trade_id, "pending": OfferStatus.PENDING.value},
        )
        return [_row_to_offer(row) for row in result.fetchall()]

    async def list_offers_for_item(self, db: AsyncSession, item_id: str) -> list[TradeOffer]:
        result = await db.execute(
            _LIST_OFFERS_FOR_ITEM_SQL,
            {"item_id": item_id, "pending": OfferStatus.PENDING.value},
        )
        return [_row_to_offer(row) for row in result.fetchall()]
