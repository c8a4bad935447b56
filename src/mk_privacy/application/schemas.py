"""Pydantic schemas for mk_privacy API."""

from pydantic import BaseModel

from src.mk_common.enums import PrivacyLevel
from src.mk_privacy.domain.models import AccessDecision, PrivacySettings


class UpdatePrivacyRequest(BaseModel):
    inventory: PrivacyLevel | None = None
    trade: PrivacyLevel | None = None
    marketplace: PrivacyLevel | None = None

    def changes(self) -> dict[str, str]:
        return {k: v.value for k, v in self.model_dump(exclude_none=True).items()}


class PrivacySettingsResponse(BaseModel):
    user_id: str
    inventory: str
    trade: str
    marketplace: str

    @classmethod
    def from_domain(cls, s: PrivacySettings) -> "PrivacySettingsResponse":
        return cls(
            user_id=s.user_id,
            inventory=s.inventory,
            trade=s.trade,
            marketplace=s.marketplace,
        )


class AccessDecisionResponse(BaseModel):
    allowed: bool
    reason: str | None

    @classmethod
    def from_domain(cls, d: AccessDecision) -> "AccessDecisionResponse":
        return cls(allowed=d.allowed, reason=d.reason)


class ProfileAccessResponse(BaseModel):
    owner_id: str
    is_owner: bool
    inventory: AccessDecisionResponse
    trade: AccessDecisionResponse
    marketplace: AccessDecisionResponse
