"""PrivacyService — access decisions for the three privacy classes.

Evaluation order for check_access(owner, viewer, class):
  1. unknown class               -> denied
  2. malformed owner id          -> denied
  3. viewer is the owner         -> allowed
  4. owner's level for the class:
       public  -> allowed
       private -> denied (class-specific message)
       friends -> denied without a signed-in viewer, else allowed iff the
                  two users have an accepted friendship
       other   -> denied

A missing settings row means every class is public. Decisions are read-only
and safe to evaluate concurrently; store errors propagate to the caller.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_common.enums import PrivacyLevel, ResourceClass
from src.mk_common.errors import InvalidPrivacySettingsError, PrivacyRestrictedError
from src.mk_common.identifiers import ensure_uuid, is_valid_uuid
from src.mk_common.transaction import atomic
from src.mk_privacy.application.schemas import (
    AccessDecisionResponse,
    PrivacySettingsResponse,
    ProfileAccessResponse,
)
from src.mk_privacy.domain.models import AccessDecision, PrivacySettings
from src.mk_privacy.domain.repository import PrivacyRepositoryProtocol
from src.mk_privacy.infrastructure.persistence import PrivacyRepository

logger = logging.getLogger(__name__)

_VALID_CLASSES = frozenset(c.value for c in ResourceClass)
_VALID_LEVELS = frozenset(level.value for level in PrivacyLevel)

_PRIVATE_MESSAGES = {
    ResourceClass.INVENTORY.value: "This inventory is private.",
    ResourceClass.TRADE.value: "This user has disabled trades. You cannot send them offers.",
    ResourceClass.MARKETPLACE.value: "This user has disabled marketplace purchases.",
}

_FRIENDS_ONLY_MESSAGES = {
    ResourceClass.INVENTORY.value: "This inventory is only visible to the user's friends.",
    ResourceClass.TRADE.value: (
        "This user only accepts trades from friends. Add them as a friend to send offers."
    ),
    ResourceClass.MARKETPLACE.value: (
        "This user only sells to friends. Add them as a friend to buy their items."
    ),
}

_SIGN_IN_MESSAGE = "You must sign in to access this content."


class PrivacyService:
    def __init__(self, repo: PrivacyRepositoryProtocol | None = None) -> None:
        self._repo: PrivacyRepositoryProtocol = repo or PrivacyRepository()

    # ------------------------------------------------------------------
    # Core evaluator
    # ------------------------------------------------------------------

    async def check_access(
        self,
        db: AsyncSession,
        owner_id: str,
        viewer_id: str | None,
        resource_class: str,
    ) -> AccessDecision:
        if resource_class not in _VALID_CLASSES:
            return AccessDecision(False, "Unknown privacy class")
        if not is_valid_uuid(owner_id):
            return AccessDecision(False, "Invalid user id")

        if viewer_id is not None and viewer_id.lower() == owner_id.lower():
            return AccessDecision(True)

        settings = await self._repo.get_settings(db, owner_id)
        level = settings.level_for(resource_class) if settings else PrivacyLevel.PUBLIC.value

        if level == PrivacyLevel.PUBLIC.value:
            return AccessDecision(True)
        if level == PrivacyLevel.PRIVATE.value:
            return AccessDecision(False, _PRIVATE_MESSAGES[resource_class])
        if level == PrivacyLevel.FRIENDS.value:
            if viewer_id is None or not is_valid_uuid(viewer_id):
                return AccessDecision(False, _SIGN_IN_MESSAGE)
            if await self.are_friends(db, owner_id, viewer_id):
                return AccessDecision(True)
            return AccessDecision(False, _FRIENDS_ONLY_MESSAGES[resource_class])

        logger.warning("Unknown privacy level %r for user %s", level, owner_id)
        return AccessDecision(False, "Unknown privacy configuration")

    async def are_friends(self, db: AsyncSession, user_a: str, user_b: str) -> bool:
        """Symmetric; only accepted friendships count; everyone is their own friend."""
        if not is_valid_uuid(user_a) or not is_valid_uuid(user_b):
            return False
        if user_a.lower() == user_b.lower():
            return True
        return await self._repo.are_friends(db, user_a.lower(), user_b.lower())

    # ------------------------------------------------------------------
    # Per-class wrappers
    # ------------------------------------------------------------------

    async def can_view_inventory(
        self, db: AsyncSession, viewer_id: str | None, owner_id: str
    ) -> AccessDecision:
        return await self.check_access(db, owner_id, viewer_id, ResourceClass.INVENTORY.value)

    async def can_send_trade(
        self, db: AsyncSession, sender_id: str | None, receiver_id: str
    ) -> AccessDecision:
        return await self.check_access(db, receiver_id, sender_id, ResourceClass.TRADE.value)

    async def can_purchase_from(
        self, db: AsyncSession, buyer_id: str | None, seller_id: str
    ) -> AccessDecision:
        return await self.check_access(db, seller_id, buyer_id, ResourceClass.MARKETPLACE.value)

    async def require_access(
        self,
        db: AsyncSession,
        owner_id: str,
        viewer_id: str | None,
        resource_class: str,
    ) -> None:
        """Raise PrivacyRestrictedError when access is denied."""
        decision = await self.check_access(db, owner_id, viewer_id, resource_class)
        if not decision.allowed:
            raise PrivacyRestrictedError(decision.reason or "Access restricted")

    # ------------------------------------------------------------------
    # Settings management
    # ------------------------------------------------------------------

    async def get_settings(self, db: AsyncSession, user_id: str) -> PrivacySettingsResponse:
        user_id = ensure_uuid(user_id, "user_id")
        stored = await self._repo.get_settings(db, user_id)
        return PrivacySettingsResponse.from_domain(stored or PrivacySettings(user_id=user_id))

    async def update_settings(
        self, db: AsyncSession, user_id: str, changes: dict[str, str]
    ) -> PrivacySettingsResponse:
        user_id = ensure_uuid(user_id, "user_id")
        cleaned: dict[str, str] = {}
        for resource_class, level in changes.items():
            if resource_class not in _VALID_CLASSES:
                raise InvalidPrivacySettingsError(f"unknown class {resource_class!r}")
            if level not in _VALID_LEVELS:
                raise InvalidPrivacySettingsError(
                    f"{resource_class} must be one of {', '.join(sorted(_VALID_LEVELS))}"
                )
            cleaned[resource_class] = level
        if not cleaned:
            raise InvalidPrivacySettingsError("no settings provided")

        async with atomic(db):
            updated = await self._repo.upsert_settings(db, user_id, cleaned)

        logger.info("Privacy settings updated: user=%s changes=%s", user_id, cleaned)
        return PrivacySettingsResponse.from_domain(updated)

    async def profile_access(
        self, db: AsyncSession, owner_id: str, viewer_id: str | None
    ) -> ProfileAccessResponse:
        owner_id = ensure_uuid(owner_id, "owner_id")
        decisions = {
            resource_class: await self.check_access(db, owner_id, viewer_id, resource_class)
            for resource_class in (c.value for c in ResourceClass)
        }
        return ProfileAccessResponse(
            owner_id=owner_id,
            is_owner=viewer_id is not None and viewer_id.lower() == owner_id,
            inventory=AccessDecisionResponse.from_domain(decisions["inventory"]),
            trade=AccessDecisionResponse.from_domain(decisions["trade"]),
            marketplace=AccessDecisionResponse.from_domain(decisions["marketplace"]),
        )
