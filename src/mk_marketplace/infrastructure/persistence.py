"""ListingRepository — raw SQL over marketplace_listings.

At most one Active listing per item is enforced by the partial unique index
uq_listings_item_active; a violation surfaces as IntegrityError and is
mapped to ConflictError by `atomic(db)`.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_common.enums import ListingStatus
from src.mk_common.errors import InternalError, ListingNotFoundError
from src.mk_marketplace.domain.models import Listing

_LISTING_COLUMNS = """
    l.id, l.item_id, l.seller_id, l.price_cents, l.status, l.buyer_id,
    l.commission_cents, l.sold_at, l.created_at, l.updated_at
"""

_GET_LISTING_SQL = text(f"""
    SELECT {_LISTING_COLUMNS}, i.name AS item_name
    FROM marketplace_listings l
    LEFT JOIN items i ON i.id = l.item_id
    WHERE l.id = CAST(:listing_id AS UUID)
""")

_LOCK_LISTING_SQL = text(f"""
    SELECT {_LISTING_COLUMNS}, NULL AS item_name
    FROM marketplace_listings l
    WHERE l.id = CAST(:listing_id AS UUID)
    FOR UPDATE
""")

_INSERT_LISTING_SQL = text(f"""
    INSERT INTO marketplace_listings AS l (item_id, seller_id, price_cents, status)
    VALUES (CAST(:item_id AS UUID), :seller_id, :price_cents, :status)
    RETURNING {_LISTING_COLUMNS}, NULL AS item_name
""")

# Conditional on Active so a second seller of the same row cannot win
_MARK_SOLD_SQL = text(f"""
    UPDATE marketplace_listings AS l
    SET status = :sold,
        buyer_id = :buyer_id,
        commission_cents = :commission_cents,
        sold_at = NOW(),
        updated_at = NOW()
    WHERE l.id = CAST(:listing_id AS UUID) AND l.status = :active
    RETURNING {_LISTING_COLUMNS}, NULL AS item_name
""")

_SET_STATUS_SQL = text(f"""
    UPDATE marketplace_listings AS l
    SET status = :status, updated_at = NOW()
    WHERE l.id = CAST(:listing_id AS UUID)
    RETURNING {_LISTING_COLUMNS}, NULL AS item_name
""")

_UPDATE_PRICE_SQL = text(f"""
    UPDATE marketplace_listings AS l
    SET price_cents = :price_cents, updated_at = NOW()
    WHERE l.id = CAST(:listing_id AS UUID)
    RETURNING {_LISTING_COLUMNS}, NULL AS item_name
""")

_LIST_ACTIVE_SQL = text(f"""
    SELECT {_LISTING_COLUMNS}, i.name AS item_name
    FROM marketplace_listings l
    LEFT JOIN items i ON i.id = l.item_id
    WHERE l.status = :active
      AND (CAST(:cursor_ts AS TIMESTAMPTZ) IS NULL
           OR (l.created_at, l.id) < (CAST(:cursor_ts AS TIMESTAMPTZ), CAST(:cursor_id AS UUID)))
    ORDER BY l.created_at DESC, l.id DESC
    LIMIT :limit
""")

_LIST_BY_SELLER_SQL = text(f"""
    SELECT {_LISTING_COLUMNS}, i.name AS item_name
    FROM marketplace_listings l
    LEFT JOIN items i ON i.id = l.item_id
    WHERE l.seller_id = :seller_id
      AND (CAST(:status AS VARCHAR) IS NULL OR l.status = CAST(:status AS VARCHAR))
      AND (CAST(:cursor_ts AS TIMESTAMPTZ) IS NULL
           OR (l.created_at, l.id) < (CAST(:cursor_ts AS TIMESTAMPTZ), CAST(:cursor_id AS UUID)))
    ORDER BY l.created_at DESC, l.id DESC
    LIMIT :limit
""")


def _row_to_listing(row: object) -> Listing:
    return Listing(
        id=str(row.id),  # type: ignore[attr-defined]
        item_id=str(row.item_id),  # type: ignore[attr-defined]
        seller_id=row.seller_id,  # type: ignore[attr-defined]
        price_cents=row.price_cents,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        buyer_id=row.buyer_id,  # type: ignore[attr-defined]
        commission_cents=row.commission_cents,  # type: ignore[attr-defined]
        sold_at=row.sold_at,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
        item_name=row.item_name,  # type: ignore[attr-defined]
    )


def _cursor_params(cursor: tuple[datetime, str] | None) -> dict[str, object]:
    if cursor is None:
        return {"cursor_ts": None, "cursor_id": None}
    return {"cursor_ts": cursor[0], "cursor_id": cursor[1]}


class ListingRepository:
    async def get_listing(self, db: AsyncSession, listing_id: str) -> Listing | None:
        result = await db.execute(_GET_LISTING_SQL, {"listing_id": listing_id})
        row = result.fetchone()
        return _row_to_listing(row) if row else None

    async def lock_listing(self, db: AsyncSession, listing_id: str) -> Listing | None:
        result = await db.execute(_LOCK_LISTING_SQL, {"listing_id": listing_id})
        row = result.fetchone()
        return _row_to_listing(row) if row else None

    async def insert_listing(
        self, db: AsyncSession, item_id: str, seller_id: str, price_cents: int
    ) -> Listing:
        result = await db.execute(
            _INSERT_LISTING_SQL,
            {
                "item_id": item_id,
                "seller_id": seller_id,
                "price_cents": price_cents,
                "status": ListingStatus.ACTIVE.value,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Listing insert returned no rows")
        return _row_to_listing(row)

    async def mark_sold(
        self, db: AsyncSession, listing_id: str, buyer_id: str, commission_cents: int
    ) -> Listing | None:
        """Returns None if the listing was no longer Active."""
        result = await db.execute(
            _MARK_SOLD_SQL,
            {
                "listing_id": listing_id,
                "buyer_id": buyer_id,
                "commission_cents": commission_cents,
                "sold": ListingStatus.SOLD.value,
                "active": ListingStatus.ACTIVE.value,
            },
        )
        row = result.fetchone()
        return _row_to_listing(row) if row else None

    async def set_status(self, db: AsyncSession, listing_id: str, status: str) -> Listing:
        result = await db.execute(_SET_STATUS_SQL, {"listing_id": listing_id, "status": status})
        row = result.fetchone()
        if row is None:
            raise ListingNotFoundError(listing_id)
        return _row_to_listing(row)

    async def update_price(
        self, db: AsyncSession, listing_id: str, price_cents: int
    ) -> Listing:
        result = await db.execute(
            _UPDATE_PRICE_SQL, {"listing_id": listing_id, "price_cents": price_cents}
        )
        row = result.fetchone()
        if row is None:
            raise ListingNotFoundError(listing_id)
        return _row_to_listing(row)

    async def list_active(
        self,
        db: AsyncSession,
        cursor: tuple[datetime, str] | None,
        limit: int,
    ) -> list[Listing]:
        result = await db.execute(
            _LIST_ACTIVE_SQL,
            {"active": ListingStatus.ACTIVE.value, "limit": limit, **_cursor_params(cursor)},
        )
        return [_row_to_listing(row) for row in result.fetchall()]

    async def list_by_seller(
        self,
        db: AsyncSession,
        seller_id: str,
        status: str | None,
        cursor: tuple[datetime, str] | None,
        limit: int,
    ) -> list[Listing]:
        result = await db.execute(
            _LIST_BY_SELLER_SQL,
            {"seller_id": seller_id, "status": status, "limit": limit, **_cursor_params(cursor)},
        )
        return [_row_to_listing(row) for row in result.fetchall()]
