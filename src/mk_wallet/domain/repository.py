"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_wallet.domain.models import Wallet, WalletTransaction


class WalletRepositoryProtocol(Protocol):
    async def get_wallet(self, db: AsyncSession, user_id: str) -> Wallet | None: ...

    async def ensure_wallets(self, db: AsyncSession, user_ids: list[str]) -> None: ...

    async def lock_wallets(
        self, db: AsyncSession, user_ids: list[str]
    ) -> dict[str, Wallet]: ...

    async def debit(self, db: AsyncSession, user_id: str, amount: int) -> Wallet: ...

    async def credit(self, db: AsyncSession, user_id: str, amount: int) -> Wallet: ...

    async def insert_transaction(
        self,
        db: AsyncSession,
        user_id: str,
        tx_type: str,
        amount: int,
        balance_after: int,
        idempotency_key: str | None,
        reference_type: str | None,
        reference_id: str | None,
        description: str | None,
    ) -> WalletTransaction: ...

    async def get_transaction_by_idempotency_key(
        self, db: AsyncSession, idempotency_key: str
    ) -> WalletTransaction | None: ...

    async def sum_completed_since(
        self, db: AsyncSession, user_id: str, tx_type: str, since: datetime
    ) -> int: ...

    async def list_transactions(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        tx_type: str | None,
    ) -> list[WalletTransaction]: ...
