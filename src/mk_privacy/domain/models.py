"""Privacy domain models — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass

from src.mk_common.enums import PrivacyLevel


@dataclass
class PrivacySettings:
    """Per-user visibility levels, one per resource class.

    A user with no stored row is treated as all-public.
    """

    user_id: str
    inventory: str = PrivacyLevel.PUBLIC.value
    trade: str = PrivacyLevel.PUBLIC.value
    marketplace: str = PrivacyLevel.PUBLIC.value

    def level_for(self, resource_class: str) -> str | None:
        return {
            "inventory": self.inventory,
            "trade": self.trade,
            "marketplace": self.marketplace,
        }.get(resource_class)


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: str | None = None
