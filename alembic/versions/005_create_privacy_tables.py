"""005: create privacy_settings and friendships tables

Revision ID: 005
Revises: 004
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE privacy_settings (
            user_id     VARCHAR(64) PRIMARY KEY,
            inventory   VARCHAR(10) NOT NULL DEFAULT 'public',
            trade       VARCHAR(10) NOT NULL DEFAULT 'public',
            marketplace VARCHAR(10) NOT NULL DEFAULT 'public',
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_privacy_inventory CHECK (inventory IN ('public', 'friends', 'private')),
            CONSTRAINT ck_privacy_trade CHECK (trade IN ('public', 'friends', 'private')),
            CONSTRAINT ck_privacy_marketplace CHECK (
                marketplace IN ('public', 'friends', 'private')
            )
        );
    """)
    op.execute("""
        CREATE TABLE friendships (
            id          BIGSERIAL   PRIMARY KEY,
            user_id1    VARCHAR(64) NOT NULL,
            user_id2    VARCHAR(64) NOT NULL,
            status      VARCHAR(10) NOT NULL DEFAULT 'pending',
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_friendships_pair UNIQUE (user_id1, user_id2),
            CONSTRAINT ck_friendships_status CHECK (status IN ('pending', 'accepted', 'blocked')),
            CONSTRAINT ck_friendships_distinct CHECK (user_id1 <> user_id2)
        );
    """)
    op.execute("CREATE INDEX idx_friendships_user2 ON friendships (user_id2, user_id1);")
    op.execute("""
        CREATE TRIGGER trg_privacy_settings_updated_at
            BEFORE UPDATE ON privacy_settings
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS friendships CASCADE;")
    op.execute("DROP TABLE IF EXISTS privacy_settings CASCADE;")
