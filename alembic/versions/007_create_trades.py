"""007: create trades and trade_offers tables

Revision ID: 007
Revises: 006
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE trades (
            id                  UUID        PRIMARY KEY DEFAULT gen_random_uuid(),
            item_id             UUID        NOT NULL REFERENCES items (id),
            offerer_id          VARCHAR(64) NOT NULL,
            status              VARCHAR(12) NOT NULL DEFAULT 'Pendiente',
            accepted_offer_id   UUID,
            receiver_id         VARCHAR(64),
            expires_at          TIMESTAMPTZ NOT NULL,
            closed_at           TIMESTAMPTZ,
            created_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_trades_status CHECK (
                status IN ('Pendiente', 'Completado', 'Cancelado')
            )
        );
    """)
    op.execute("""
        CREATE TABLE trade_offers (
            id          UUID        PRIMARY KEY DEFAULT gen_random_uuid(),
            trade_id    UUID        NOT NULL REFERENCES trades (id),
            offerer_id  VARCHAR(64) NOT NULL,
            item_id     UUID        NOT NULL REFERENCES items (id),
            status      VARCHAR(12) NOT NULL DEFAULT 'Pendiente',
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_trade_offers_status CHECK (
                status IN ('Pendiente', 'Aceptado', 'Rechazado', 'Cancelado')
            )
        );
    """)
    op.execute(
        "CREATE UNIQUE INDEX uq_trades_item_pending "
        "ON trades (item_id) WHERE status = 'Pendiente';"
    )
    op.execute(
        "CREATE UNIQUE INDEX uq_trade_offers_pending "
        "ON trade_offers (trade_id, offerer_id, item_id) WHERE status = 'Pendiente';"
    )
    op.execute("CREATE INDEX idx_trades_offerer ON trades (offerer_id, status);")
    op.execute("CREATE INDEX idx_trade_offers_trade ON trade_offers (trade_id, status);")
    op.execute("CREATE INDEX idx_trade_offers_item ON trade_offers (item_id, status);")
    op.execute("""
        CREATE TRIGGER trg_trades_updated_at
            BEFORE UPDATE ON trades
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("""
        CREATE TRIGGER trg_trade_offers_updated_at
            BEFORE UPDATE ON trade_offers
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS trade_offers CASCADE;")
    op.execute("DROP TABLE IF EXISTS trades CASCADE;")
