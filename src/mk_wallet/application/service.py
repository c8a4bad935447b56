"""WalletApplicationService — balance reads, reloads and history.

Reload runs inside `atomic(db)`; balance and history are read-only and run
without an explicit transaction. Purchase debits/credits are driven by the
marketplace engine through the same repository.
"""

import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.mk_common.datetime_utils import utc_day_start
from src.mk_common.enums import EventType, WalletTransactionType
from src.mk_common.errors import (
    AlreadyProcessedError,
    InvalidAmountError,
    ReloadLimitExceededError,
)
from src.mk_common.events import write_event
from src.mk_common.money import cents_to_display, dollars_to_cents, parse_decimal_amount
from src.mk_common.transaction import atomic
from src.mk_wallet.application.schemas import (
    BalanceResponse,
    ReloadResponse,
    TransactionHistoryResponse,
    WalletTransactionItem,
    cursor_decode,
    cursor_encode,
)
from src.mk_wallet.domain.repository import WalletRepositoryProtocol
from src.mk_wallet.infrastructure.persistence import WalletRepository

logger = logging.getLogger(__name__)


def validate_reload_amount(amount: Decimal | str) -> int:
    """Return the reload amount in cents or raise InvalidAmountError."""
    try:
        cents = dollars_to_cents(parse_decimal_amount(amount))
    except ValueError as exc:
        raise InvalidAmountError(str(exc)) from exc
    if cents < settings.MIN_RELOAD_CENTS:
        raise InvalidAmountError(
            f"minimum reload is {cents_to_display(settings.MIN_RELOAD_CENTS)}"
        )
    if cents > settings.MAX_RELOAD_CENTS:
        raise InvalidAmountError(
            f"maximum reload is {cents_to_display(settings.MAX_RELOAD_CENTS)}"
        )
    return cents


class WalletApplicationService:
    def __init__(self, repo: WalletRepositoryProtocol | None = None) -> None:
        self._repo: WalletRepositoryProtocol = repo or WalletRepository()

    async def get_balance(self, db: AsyncSession, user_id: str) -> BalanceResponse:
        wallet = await self._repo.get_wallet(db, user_id)
        # No wallet row yet means nothing was ever credited
        return BalanceResponse.from_cents(user_id, wallet.balance_cents if wallet else 0)

    async def reload(
        self,
        db: AsyncSession,
        user_id: str,
        amount: Decimal | str,
        idempotency_key: str | None = None,
    ) -> ReloadResponse:
        amount_cents = validate_reload_amount(amount)

        async with atomic(db):
            await self._repo.ensure_wallets(db, [user_id])
            wallets = await self._repo.lock_wallets(db, [user_id])
            wallet = wallets[user_id]

            if idempotency_key is not None:
                existing = await self._repo.get_transaction_by_idempotency_key(
                    db, idempotency_key
                )
                if existing is not None:
                    raise AlreadyProcessedError(idempotency_key)

            reloaded_today = await self._repo.sum_completed_since(
                db, user_id, WalletTransactionType.RELOAD.value, utc_day_start()
            )
            if reloaded_today + amount_cents > settings.MAX_DAILY_RELOAD_CENTS:
                remaining = max(settings.MAX_DAILY_RELOAD_CENTS - reloaded_today, 0)
                raise ReloadLimitExceededError(
                    f"you can reload up to {cents_to_display(remaining)} more today",
                    settings.MAX_DAILY_RELOAD_CENTS,
                    reloaded_today,
                )
            if wallet.balance_cents + amount_cents > settings.MAX_BALANCE_CENTS:
                raise ReloadLimitExceededError(
                    f"balance would exceed {cents_to_display(settings.MAX_BALANCE_CENTS)}",
                    settings.MAX_BALANCE_CENTS,
                    wallet.balance_cents,
                )

            updated = await self._repo.credit(db, user_id, amount_cents)
            tx = await self._repo.insert_transaction(
                db,
                user_id=user_id,
                tx_type=WalletTransactionType.RELOAD.value,
                amount=amount_cents,
                balance_after=updated.balance_cents,
                idempotency_key=idempotency_key,
                reference_type="RELOAD",
                reference_id=None,
                description="Wallet reload",
            )
            await write_event(
                EventType.WALLET_RELOADED,
                "wallet",
                user_id,
                user_id,
                {"amount_cents": amount_cents, "transaction_id": tx.id},
                db,
            )

        logger.info("Wallet reloaded: user=%s amount=%d tx=%d", user_id, amount_cents, tx.id)
        return ReloadResponse.from_result(updated.balance_cents, amount_cents, tx.id)

    async def list_transactions(
        self,
        db: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int,
        tx_type: str | None,
    ) -> TransactionHistoryResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        txs = await self._repo.list_transactions(db, user_id, cursor_id, limit + 1, tx_type)
        has_more = len(txs) > limit
        page = txs[:limit]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return TransactionHistoryResponse(
            items=[WalletTransactionItem.from_domain(tx) for tx in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )
