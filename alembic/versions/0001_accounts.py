"""Initial schema for accounts with their current token pair."""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_accounts"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create accounts table with username uniqueness and token lookup indexes."""

    op.create_table(
        "accounts",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("username", sa.Text(), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("access_token", sa.Text(), nullable=True),
        sa.Column("refresh_token", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.UniqueConstraint("username", name="uq_accounts_username"),
        sa.CheckConstraint(
            "password_hash <> ''",
            name="ck_accounts_password_hash_not_empty",
        ),
    )
    op.create_index("ix_accounts_access_token", "accounts", ["access_token"])
    op.create_index("ix_accounts_refresh_token", "accounts", ["refresh_token"])


def downgrade() -> None:
    """Drop accounts table and its indexes."""

    op.drop_index("ix_accounts_refresh_token", table_name="accounts")
    op.drop_index("ix_accounts_access_token", table_name="accounts")
    op.drop_table("accounts")
