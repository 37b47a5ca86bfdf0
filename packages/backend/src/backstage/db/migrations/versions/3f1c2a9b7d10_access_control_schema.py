"""access control schema

Accounts, organizations, memberships, API keys, artists, and the two
artist join tables read by the access-control layer.

Revision ID: 3f1c2a9b7d10
Revises:
Create Date: 2026-10-19 09:12:44.120331
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9b7d10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.text("now()"),
        nullable=True,
    )


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "organizations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "artists",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )

    # ─── Memberships ─────────────────────────────────────
    op.create_table(
        "account_organization_ids",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("account_id", sa.Uuid(), nullable=False),
        sa.Column("organization_id", sa.Uuid(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["organization_id"], ["organizations.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "account_id", "organization_id", name="uq_account_organization"
        ),
    )
    op.create_index(
        "idx_account_org_org", "account_organization_ids", ["organization_id"]
    )

    # ─── API keys ────────────────────────────────────────
    op.create_table(
        "account_api_keys",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("account_id", sa.Uuid(), nullable=False),
        sa.Column("organization_id", sa.Uuid(), nullable=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("key_hash", sa.String(length=64), nullable=False),
        sa.Column("prefix", sa.String(length=12), nullable=False),
        _created_at(),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["organization_id"], ["organizations.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_api_keys_account", "account_api_keys", ["account_id"])
    op.create_index(
        "idx_api_keys_hash", "account_api_keys", ["key_hash"], unique=True
    )

    # ─── Artist access ───────────────────────────────────
    op.create_table(
        "account_artist_ids",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("account_id", sa.Uuid(), nullable=False),
        sa.Column("artist_id", sa.Uuid(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["artist_id"], ["artists.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("account_id", "artist_id", name="uq_account_artist"),
    )
    op.create_table(
        "artist_organization_ids",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("artist_id", sa.Uuid(), nullable=False),
        sa.Column("organization_id", sa.Uuid(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["artist_id"], ["artists.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["organization_id"], ["organizations.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "artist_id", "organization_id", name="uq_artist_organization"
        ),
    )
    op.create_index(
        "idx_artist_org_artist", "artist_organization_ids", ["artist_id"]
    )


def downgrade() -> None:
    op.drop_index("idx_artist_org_artist", table_name="artist_organization_ids")
    op.drop_table("artist_organization_ids")
    op.drop_table("account_artist_ids")
    op.drop_index("idx_api_keys_hash", table_name="account_api_keys")
    op.drop_index("idx_api_keys_account", table_name="account_api_keys")
    op.drop_table("account_api_keys")
    op.drop_index("idx_account_org_org", table_name="account_organization_ids")
    op.drop_table("account_organization_ids")
    op.drop_table("artists")
    op.drop_table("organizations")
    op.drop_table("accounts")
