"""006: create marketplace_listings table

Revision ID: 006
Revises: 005
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE marketplace_listings (
            id                  UUID        PRIMARY KEY DEFAULT gen_random_uuid(),
            item_id             UUID        NOT NULL REFERENCES items (id),
            seller_id           VARCHAR(64) NOT NULL,
            price_cents         BIGINT      NOT NULL,
            status              VARCHAR(10) NOT NULL DEFAULT 'Active',
            buyer_id            VARCHAR(64),
            commission_cents    BIGINT      NOT NULL DEFAULT 0,
            sold_at             TIMESTAMPTZ,
            created_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_listings_price_gt_0 CHECK (price_cents > 0),
            CONSTRAINT ck_listings_status CHECK (status IN ('Active', 'Sold', 'Cancelled')),
            CONSTRAINT ck_listings_sold_has_buyer CHECK (
                status <> 'Sold' OR (buyer_id IS NOT NULL AND sold_at IS NOT NULL)
            )
        );
    """)
    # At most one Active listing per item
    op.execute(
        "CREATE UNIQUE INDEX uq_listings_item_active "
        "ON marketplace_listings (item_id) WHERE status = 'Active';"
    )
    op.execute(
        "CREATE INDEX idx_listings_active_browse "
        "ON marketplace_listings (created_at DESC, id DESC) WHERE status = 'Active';"
    )
    op.execute("CREATE INDEX idx_listings_seller ON marketplace_listings (seller_id, status);")
    op.execute("""
        CREATE TRIGGER trg_listings_updated_at
            BEFORE UPDATE ON marketplace_listings
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS marketplace_listings CASCADE;")
