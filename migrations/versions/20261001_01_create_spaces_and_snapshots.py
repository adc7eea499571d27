"""create spaces and balance snapshot tables

Revision ID: 20261001_01
Revises:
Create Date: 2026-10-01 09:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

from space_ledger.infrastructure.database.types import Money


# revision identifiers, used by Alembic.
revision = "20261001_01"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "spaces",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("account_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("kind", sa.String(length=20), nullable=False),
        sa.Column("balance", Money(), nullable=False, server_default="0"),
        sa.Column("is_visible", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_frozen", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("frozen_at", sa.DateTime(timezone=True)),
        sa.Column("unfrozen_at", sa.DateTime(timezone=True)),
        sa.Column("target_amount", Money()),
        sa.Column("target_date", sa.DateTime(timezone=True)),
        sa.Column("description", sa.Text()),
        sa.Column("icon_id", sa.String(length=50)),
        sa.Column("color_code", sa.String(length=20)),
        sa.Column("auto_transfer_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("transfer_frequency", sa.String(length=20)),
        sa.Column("transfer_amount", Money()),
        sa.Column("source_space_id", sa.String(length=36)),
        sa.Column("last_balance_update_reason", sa.String(length=255)),
        sa.Column("last_balance_update_at", sa.DateTime(timezone=True)),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_spaces_account_id", "spaces", ["account_id"])
    op.create_index("ix_spaces_kind", "spaces", ["kind"])
    op.create_index(
        "uq_spaces_main_per_account",
        "spaces",
        ["account_id"],
        unique=True,
        sqlite_where=sa.text("kind = 'MAIN'"),
        postgresql_where=sa.text("kind = 'MAIN'"),
    )

    op.create_table(
        "balance_snapshots",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("account_id", sa.String(length=36), nullable=False),
        sa.Column("space_id", sa.String(length=36), nullable=True),
        sa.Column("balance_type", sa.String(length=30), nullable=False, server_default="CURRENT"),
        sa.Column("amount", Money(), nullable=False),
        sa.Column("as_of", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_balance_snapshots_account_id", "balance_snapshots", ["account_id"])
    op.create_index("ix_balance_snapshots_space_as_of", "balance_snapshots", ["space_id", "as_of"])


def downgrade() -> None:
    op.drop_index("ix_balance_snapshots_space_as_of", table_name="balance_snapshots")
    op.drop_index("ix_balance_snapshots_account_id", table_name="balance_snapshots")
    op.drop_table("balance_snapshots")

    op.drop_index("uq_spaces_main_per_account", table_name="spaces")
    op.drop_index("ix_spaces_kind", table_name="spaces")
    op.drop_index("ix_spaces_account_id", table_name="spaces")
    op.drop_table("spaces")
