"""003: create wallet_transactions table

Revision ID: 003
Revises: 002
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE wallet_transactions (
            id                  BIGSERIAL       PRIMARY KEY,
            user_id             VARCHAR(64)     NOT NULL,
            tx_type             VARCHAR(20)     NOT NULL,
            amount_cents        BIGINT          NOT NULL,
            balance_after_cents BIGINT          NOT NULL,
            status              VARCHAR(20)     NOT NULL DEFAULT 'completed',
            idempotency_key     VARCHAR(128),
            reference_type      VARCHAR(30),
            reference_id        VARCHAR(64),
            description         TEXT,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_wallet_tx_idempotency_key UNIQUE (idempotency_key),
            CONSTRAINT ck_wallet_tx_type CHECK (
                tx_type IN ('purchase', 'sale', 'commission', 'reload')
            ),
            CONSTRAINT ck_wallet_tx_status CHECK (
                status IN ('pending', 'completed', 'failed')
            )
        );
    """)
    op.execute(
        "CREATE INDEX idx_wallet_tx_user_type_time "
        "ON wallet_transactions (user_id, tx_type, created_at);"
    )
    op.execute("CREATE INDEX idx_wallet_tx_user_id ON wallet_transactions (user_id, id DESC);")
    op.execute("COMMENT ON TABLE wallet_transactions IS 'Wallet ledger, append-only';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS wallet_transactions CASCADE;")
