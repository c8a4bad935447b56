"""Transaction coordinator — one atomic scope per logical operation.

Every mutating engine procedure follows the same shape inside `atomic(db)`:
re-read current state under row locks -> validate -> mutate every affected
row -> commit. Advisory pre-checks done before entering the scope are never
trusted for money, ownership, or status.

Lock order (must stay fixed across procedures to avoid deadlocks):
  1. per-user advisory locks (quota scopes), ordered by key
  2. wallets, ordered by user_id
  3. trade row, then its offer rows
  4. listing row
  5. item rows, ordered by id

Isolation: PostgreSQL READ COMMITTED + explicit `FOR UPDATE` row locks.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_common.errors import ConflictError

logger = logging.getLogger(__name__)

_ADVISORY_LOCK_SQL = text("SELECT pg_advisory_xact_lock(hashtext(:lock_key))")


@asynccontextmanager
async def atomic(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Run the block as a single transaction: commit on success, rollback on error.

    A unique/foreign-key violation surfacing at flush or commit time means a
    concurrent request won the race; it is reported as ConflictError.
    """
    try:
        yield db
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        logger.warning("Integrity conflict, transaction rolled back: %s", exc.orig)
        raise ConflictError() from exc
    except Exception:
        await db.rollback()
        raise


async def lock_scope(db: AsyncSession, scope: str, key: str) -> None:
    """Take a transaction-scoped advisory lock on (scope, key).

    Serialises quota-governed inserts for one user (e.g. new listings) so the
    count re-check inside the transaction cannot be raced. Released on
    commit/rollback.
    """
    await db.execute(_ADVISORY_LOCK_SQL, {"lock_key": f"{scope}:{key}"})
