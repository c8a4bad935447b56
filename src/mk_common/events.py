"""Outbox for engine events.

Rows are written inside the caller's transaction, so an event exists iff the
state change it describes was committed. Notification and audit services
consume the table; the engine never delivers anything itself.
"""

import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_common.enums import EventType

_INSERT_EVENT_SQL = text("""
    INSERT INTO engine_events (event_type, aggregate_type, aggregate_id, actor_id, payload)
    VALUES (:event_type, :aggregate_type, :aggregate_id, :actor_id, CAST(:payload AS JSONB))
""")


async def write_event(
    event_type: EventType,
    aggregate_type: str,
    aggregate_id: str,
    actor_id: str | None,
    payload: dict[str, Any],
    db: AsyncSession,
) -> None:
    """Insert one row into engine_events within the caller's transaction."""
    await db.execute(
        _INSERT_EVENT_SQL,
        {
            "event_type": event_type.value,
            "aggregate_type": aggregate_type,
            "aggregate_id": aggregate_id,
            "actor_id": actor_id,
            "payload": json.dumps(payload, default=str),
        },
    )
