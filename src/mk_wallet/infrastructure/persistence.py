"""WalletRepository — concrete implementation of WalletRepositoryProtocol.

All balance-mutating operations use atomic PostgreSQL UPDATE ... RETURNING.
A result of 0 rows on a debit means the balance would go negative.

Transaction ownership: The CALLER (application service) is responsible for
opening and committing the transaction via `atomic(db)`.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_common.errors import InsufficientFundsError, InternalError
from src.mk_common.enums import WalletTransactionStatus
from src.mk_wallet.domain.models import Wallet, WalletTransaction

# ---------------------------------------------------------------------------
# SQL: wallets
# ---------------------------------------------------------------------------

_WALLET_COLUMNS = "user_id, balance_cents, version, created_at, updated_at"

_GET_WALLET_SQL = text(f"""
    SELECT {_WALLET_COLUMNS}
    FROM wallets
    WHERE user_id = :user_id
""")

_ENSURE_WALLET_SQL = text("""
    INSERT INTO wallets (user_id)
    VALUES (:user_id)
    ON CONFLICT (user_id) DO NOTHING
""")

_LOCK_WALLETS_SQL = text(f"""
    SELECT {_WALLET_COLUMNS}
    FROM wallets
    WHERE user_id = ANY(CAST(:user_ids AS VARCHAR[]))
    ORDER BY user_id
    FOR UPDATE
""")

_DEBIT_SQL = text(f"""
    UPDATE wallets
    SET balance_cents = balance_cents - :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id AND balance_cents >= :amount
    RETURNING {_WALLET_COLUMNS}
""")

_CREDIT_SQL = text(f"""
    UPDATE wallets
    SET balance_cents = balance_cents + :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id
    RETURNING {_WALLET_COLUMNS}
""")

# ---------------------------------------------------------------------------
# SQL: wallet_transactions (append-only)
# ---------------------------------------------------------------------------

_TX_COLUMNS = """
    id, user_id, tx_type, amount_cents, balance_after_cents, status,
    idempotency_key, reference_type, reference_id, description, created_at
"""

_INSERT_TX_SQL = text(f"""
    INSERT INTO wallet_transactions
        (user_id, tx_type, amount_cents, balance_after_cents, status,
         idempotency_key, reference_type, reference_id, description)
    VALUES
        (:user_id, :tx_type, :amount_cents, :balance_after_cents, :status,
         :idempotency_key, :reference_type, :reference_id, :description)
    RETURNING {_TX_COLUMNS}
""")

_GET_TX_BY_KEY_SQL = text(f"""
    SELECT {_TX_COLUMNS}
    FROM wallet_transactions
    WHERE idempotency_key = :idempotency_key
""")

_SUM_COMPLETED_SINCE_SQL = text("""
    SELECT COALESCE(SUM(ABS(amount_cents)), 0) AS total
    FROM wallet_transactions
    WHERE user_id = :user_id
      AND tx_type = :tx_type
      AND status = :status
      AND created_at >= :since
""")

_LIST_TX_SQL = text(f"""
    SELECT {_TX_COLUMNS}
    FROM wallet_transactions
    WHERE user_id = :user_id
      AND status = 'completed'
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < CAST(:cursor_id AS BIGINT))
      AND (CAST(:tx_type AS TEXT) IS NULL OR tx_type = CAST(:tx_type AS TEXT))
    ORDER BY id DESC
    LIMIT :limit
""")


def _row_to_wallet(row: object) -> Wallet:
    return Wallet(
        user_id=row.user_id,  # type: ignore[attr-defined]
        balance_cents=row.balance_cents,  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_tx(row: object) -> WalletTransaction:
    return WalletTransaction(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        tx_type=row.tx_type,  # type: ignore[attr-defined]
        amount_cents=row.amount_cents,  # type: ignore[attr-defined]
        balance_after_cents=row.balance_after_cents,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        idempotency_key=row.idempotency_key,  # type: ignore[attr-defined]
        reference_type=row.reference_type,  # type: ignore[attr-defined]
        reference_id=row.reference_id,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class WalletRepository:
    """Concrete repository — all balance operations atomic at the SQL level."""

    async def get_wallet(self, db: AsyncSession, user_id: str) -> Wallet | None:
        result = await db.execute(_GET_WALLET_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_wallet(row) if row else None

    async def ensure_wallets(self, db: AsyncSession, user_ids: list[str]) -> None:
        for user_id in sorted(set(user_ids)):
            await db.execute(_ENSURE_WALLET_SQL, {"user_id": user_id})

    async def lock_wallets(
        self, db: AsyncSession, user_ids: list[str]
    ) -> dict[str, Wallet]:
        result = await db.execute(_LOCK_WALLETS_SQL, {"user_ids": sorted(set(user_ids))})
        return {row.user_id: _row_to_wallet(row) for row in result.fetchall()}

    async def debit(self, db: AsyncSession, user_id: str, amount: int) -> Wallet:
        result = await db.execute(_DEBIT_SQL, {"user_id": user_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            wallet = await self.get_wallet(db, user_id)
            raise InsufficientFundsError(amount, wallet.balance_cents if wallet else 0)
        return _row_to_wallet(row)

    async def credit(self, db: AsyncSession, user_id: str, amount: int) -> Wallet:
        result = await db.execute(_CREDIT_SQL, {"user_id": user_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            raise InternalError(f"Wallet not found for user {user_id}")
        return _row_to_wallet(row)

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
    ) -> WalletTransaction:
        result = await db.execute(
            _INSERT_TX_SQL,
            {
                "user_id": user_id,
                "tx_type": tx_type,
                "amount_cents": amount,
                "balance_after_cents": balance_after,
                "status": WalletTransactionStatus.COMPLETED.value,
                "idempotency_key": idempotency_key,
                "reference_type": reference_type,
                "reference_id": reference_id,
                "description": description,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Wallet transaction insert returned no rows")
        return _row_to_tx(row)

    async def get_transaction_by_idempotency_key(
        self, db: AsyncSession, idempotency_key: str
    ) -> WalletTransaction | None:
        result = await db.execute(_GET_TX_BY_KEY_SQL, {"idempotency_key": idempotency_key})
        row = result.fetchone()
        return _row_to_tx(row) if row else None

    async def sum_completed_since(
        self, db: AsyncSession, user_id: str, tx_type: str, since: datetime
    ) -> int:
        result = await db.execute(
            _SUM_COMPLETED_SINCE_SQL,
            {
                "user_id": user_id,
                "tx_type": tx_type,
                "status": WalletTransactionStatus.COMPLETED.value,
                "since": since,
            },
        )
        return int(result.scalar_one())

    async def list_transactions(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        tx_type: str | None,
    ) -> list[WalletTransaction]:
        result = await db.execute(
            _LIST_TX_SQL,
            {
                "user_id": user_id,
                "cursor_id": cursor_id,
                "tx_type": tx_type,
                "limit": limit,
            },
        )
        return [_row_to_tx(row) for row in result.fetchall()]
