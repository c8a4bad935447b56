"""008: create engine_events table

Revision ID: 008
Revises: 007
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "008"
down_revision: Union[str, None] = "007"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE engine_events (
            id              BIGSERIAL       PRIMARY KEY,
            event_type      VARCHAR(30)     NOT NULL,
            aggregate_type  VARCHAR(20)     NOT NULL,
            aggregate_id    VARCHAR(64)     NOT NULL,
            actor_id        VARCHAR(64),
            payload         JSONB           NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    op.execute("CREATE INDEX idx_engine_events_aggregate ON engine_events (aggregate_type, aggregate_id);")
    op.execute("CREATE INDEX idx_engine_events_time ON engine_events (created_at);")
    op.execute(
        "COMMENT ON TABLE engine_events IS "
        "'Outbox for notification and audit consumers, append-only';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS engine_events CASCADE;")
