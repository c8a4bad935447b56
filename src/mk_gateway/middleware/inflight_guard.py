"""Best-effort guard against concurrent duplicate purchase requests.

A double-click or client retry can deliver the same idempotency key twice
while the first request is still inside its transaction. The second one is
turned away early with OPERATION_IN_PROGRESS instead of queueing on the row
locks. PostgreSQL (unique idempotency key + FOR UPDATE) stays authoritative;
this guard only saves a round of lock contention.

Each holder writes its own random token and releases the marker only while
the token still matches, so a request that outlives the TTL cannot delete a
marker taken over by a later request.
"""

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import redis.asyncio as aioredis

from config.settings import settings
from src.mk_common.errors import OperationInProgressError

# KEYS[1] = marker key, ARGV[1] = holder token
_RELEASE_SCRIPT = """
if redis.call("GET", KEYS[1]) == ARGV[1] then
    return redis.call("DEL", KEYS[1])
end
return 0
"""


def _guard_key(scope: str, idempotency_key: str) -> str:
    return f"inflight:{scope}:{idempotency_key}"


@asynccontextmanager
async def inflight_guard(
    redis: aioredis.Redis, scope: str, idempotency_key: str
) -> AsyncIterator[None]:
    """Hold a short-lived Redis marker for the duration of the block.

    Raises:
        OperationInProgressError: another request holds the same key.
    """
    key = _guard_key(scope, idempotency_key)
    token = uuid.uuid4().hex
    acquired = await redis.set(key, token, nx=True, ex=settings.INFLIGHT_GUARD_TTL_SECONDS)
    if not acquired:
        raise OperationInProgressError()
    try:
        yield
    finally:
        await redis.eval(_RELEASE_SCRIPT, 1, key, token)
