"""004: create items table

Revision ID: 004
Revises: 003
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE items (
            id                  UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            owner_id            VARCHAR(64)     NOT NULL,
            external_item_id    VARCHAR(128)    NOT NULL,
            name                VARCHAR(255),
            is_tradeable        BOOLEAN         NOT NULL DEFAULT TRUE,
            is_marketable       BOOLEAN         NOT NULL DEFAULT TRUE,
            is_locked           BOOLEAN         NOT NULL DEFAULT FALSE,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_items_external_item_id UNIQUE (external_item_id)
        );
    """)
    op.execute("CREATE INDEX idx_items_owner ON items (owner_id);")
    op.execute("""
        CREATE TRIGGER trg_items_updated_at
            BEFORE UPDATE ON items
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS items CASCADE;")
