"""Pydantic schemas and cursor utilities for mk_wallet API."""

import base64
import json
from decimal import Decimal

from pydantic import BaseModel, Field

from src.mk_common.money import cents_to_display
from src.mk_wallet.domain.models import WalletTransaction

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except Exception:
        return None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ReloadRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, description="Amount to add, in dollars (max 2 decimals)")
    idempotency_key: str | None = Field(None, min_length=1, max_length=128)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BalanceResponse(BaseModel):
    user_id: str
    balance_cents: int
    balance_display: str

    @classmethod
    def from_cents(cls, user_id: str, balance: int) -> "BalanceResponse":
        return cls(
            user_id=user_id,
            balance_cents=balance,
            balance_display=cents_to_display(balance),
        )


class ReloadResponse(BaseModel):
    balance_cents: int
    balance_display: str
    reloaded_cents: int
    reloaded_display: str
    transaction_id: int

    @classmethod
    def from_result(cls, balance: int, amount: int, tx_id: int) -> "ReloadResponse":
        return cls(
            balance_cents=balance,
            balance_display=cents_to_display(balance),
            reloaded_cents=amount,
            reloaded_display=cents_to_display(amount),
            transaction_id=tx_id,
        )


class WalletTransactionItem(BaseModel):
    id: int
    tx_type: str
    amount_cents: int
    amount_display: str
    balance_after_cents: int
    balance_after_display: str
    reference_type: str | None
    reference_id: str | None
    description: str | None
    created_at: str  # ISO8601 string

    @classmethod
    def from_domain(cls, tx: WalletTransaction) -> "WalletTransactionItem":
        return cls(
            id=tx.id,
            tx_type=tx.tx_type,
            amount_cents=tx.amount_cents,
            amount_display=cents_to_display(tx.amount_cents),
            balance_after_cents=tx.balance_after_cents,
            balance_after_display=cents_to_display(tx.balance_after_cents),
            reference_type=tx.reference_type,
            reference_id=tx.reference_id,
            description=tx.description,
            created_at=tx.created_at.isoformat() if tx.created_at else "",
        )


class TransactionHistoryResponse(BaseModel):
    items: list[WalletTransactionItem]
    next_cursor: str | None
    has_more: bool
