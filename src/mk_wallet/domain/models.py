"""Domain models for mk_wallet — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Wallet:
    user_id: str
    balance_cents: int
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class WalletTransaction:
    id: int                          # BIGSERIAL
    user_id: str
    tx_type: str                     # WalletTransactionType value
    amount_cents: int                # positive=income negative=expense
    balance_after_cents: int
    status: str                      # WalletTransactionStatus value
    idempotency_key: str | None = None
    reference_type: str | None = None
    reference_id: str | None = None
    description: str | None = None
    created_at: datetime | None = None
