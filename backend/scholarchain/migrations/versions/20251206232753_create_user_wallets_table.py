"""create user_wallets table

Revision ID: 20251206232753
Create Date: 2025-12-06 23:27:53
"""
from alembic import op
import sqlalchemy as sa


revision = "20251206232753"


def upgrade():
    op.create_table(
        "user_wallets",
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("wallet_id", sa.String(length=255), nullable=False),
        sa.Column("is_primary", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.privy_id"], name="fk_user_wallets_user_id_users", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["wallet_id"], ["wallets.wallet_id"], name="fk_user_wallets_wallet_id_wallets", ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("user_id", "wallet_id", name="user_wallets_pkey"),
    )
    op.create_index("idx_user_wallets_user_id", "user_wallets", ["user_id"])
    op.create_index("idx_user_wallets_wallet_id", "user_wallets", ["wallet_id"])
    # Lookup index only; uniqueness per user arrives in 20251219101500
    op.create_index(
        "idx_user_wallets_is_primary",
        "user_wallets",
        ["is_primary"],
        postgresql_where=sa.text("is_primary"),
        sqlite_where=sa.text("is_primary"),
    )


def downgrade():
    op.drop_index("idx_user_wallets_is_primary", table_name="user_wallets")
    op.drop_index("idx_user_wallets_wallet_id", table_name="user_wallets")
    op.drop_index("idx_user_wallets_user_id", table_name="user_wallets")
    op.drop_table("user_wallets")
