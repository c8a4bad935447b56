"""PrivacyRepositoryProtocol — structural interface for privacy reads/writes."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_privacy.domain.models import PrivacySettings


class PrivacyRepositoryProtocol(Protocol):
    async def get_settings(self, db: AsyncSession, user_id: str) -> PrivacySettings | None: ...

    async def upsert_settings(
        self, db: AsyncSession, user_id: str, changes: dict[str, str]
    ) -> PrivacySettings: ...

    async def are_friends(self, db: AsyncSession, user_a: str, user_b: str) -> bool: ...
