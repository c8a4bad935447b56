"""PrivacyRepository — raw SQL over privacy_settings and friendships.

Friendship rows are stored once per pair in either orientation; lookups
check both (user_id1, user_id2) orders so the relation is symmetric.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_common.enums import FriendshipStatus
from src.mk_common.errors import InternalError
from src.mk_privacy.domain.models import PrivacySettings

_GET_SETTINGS_SQL = text("""
    SELECT user_id, inventory, trade, marketplace
    FROM privacy_settings
    WHERE user_id = :user_id
""")

# COALESCE keeps the stored value for classes not present in the update
_UPSERT_SETTINGS_SQL = text("""
    INSERT INTO privacy_settings (user_id, inventory, trade, marketplace)
    VALUES (
        :user_id,
        COALESCE(CAST(:inventory AS VARCHAR), 'public'),
        COALESCE(CAST(:trade AS VARCHAR), 'public'),
        COALESCE(CAST(:marketplace AS VARCHAR), 'public')
    )
    ON CONFLICT (user_id) DO UPDATE SET
        inventory = COALESCE(CAST(:inventory AS VARCHAR), privacy_settings.inventory),
        trade = COALESCE(CAST(:trade AS VARCHAR), privacy_settings.trade),
        marketplace = COALESCE(CAST(:marketplace AS VARCHAR), privacy_settings.marketplace),
        updated_at = NOW()
    RETURNING user_id, inventory, trade, marketplace
""")

_ARE_FRIENDS_SQL = text("""
    SELECT 1
    FROM friendships
    WHERE status = :status
      AND ((user_id1 = :a AND user_id2 = :b) OR (user_id1 = :b AND user_id2 = :a))
    LIMIT 1
""")


def _row_to_settings(row: object) -> PrivacySettings:
    # Stored values are normalised to lowercase on read
    return PrivacySettings(
        user_id=row.user_id,  # type: ignore[attr-defined]
        inventory=(row.inventory or "public").lower(),  # type: ignore[attr-defined]
        trade=(row.trade or "public").lower(),  # type: ignore[attr-defined]
        marketplace=(row.marketplace or "public").lower(),  # type: ignore[attr-defined]
    )


class PrivacyRepository:
    async def get_settings(self, db: AsyncSession, user_id: str) -> PrivacySettings | None:
        result = await db.execute(_GET_SETTINGS_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_settings(row) if row else None

    async def upsert_settings(
        self, db: AsyncSession, user_id: str, changes: dict[str, str]
    ) -> PrivacySettings:
        result = await db.execute(
            _UPSERT_SETTINGS_SQL,
            {
                "user_id": user_id,
                "inventory": changes.get("inventory"),
                "trade": changes.get("trade"),
                "marketplace": changes.get("marketplace"),
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Privacy settings upsert returned no rows")
        return _row_to_settings(row)

    async def are_friends(self, db: AsyncSession, user_a: str, user_b: str) -> bool:
        result = await db.execute(
            _ARE_FRIENDS_SQL,
            {"a": user_a, "b": user_b, "status": FriendshipStatus.ACCEPTED.value},
        )
        return result.fetchone() is not None
