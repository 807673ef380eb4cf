"""create wallets table

Revision ID: 20251206232730
Create Date: 2025-12-06 23:27:30
"""
from alembic import op
import sqlalchemy as sa


revision = "20251206232730"


def upgrade():
    op.create_table(
        "wallets",
        sa.Column("wallet_id", sa.String(length=255), nullable=False),
        sa.Column("wallet_address", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint("wallet_id", name="wallets_pkey"),
        sa.UniqueConstraint("wallet_address", name="uq_wallets_wallet_address"),
    )


def downgrade():
    op.drop_table("wallets")
