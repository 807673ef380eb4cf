"""enforce a single primary wallet per user

Revision ID: 20251219101500
Create Date: 2025-12-19 10:15:00
"""
from alembic import op
import sqlalchemy as sa
from scholarchain.core.errors import MigrationError
from scholarchain.migrations.versions._helpers import count_rows


revision = "20251219101500"


def upgrade():
    duplicated = count_rows(
        """
        SELECT COUNT(*) FROM (
            SELECT user_id FROM user_wallets WHERE is_primary
            GROUP BY user_id HAVING COUNT(*) > 1
        ) AS d
        """
    )
    if duplicated:
        raise MigrationError(
            f"{duplicated} user(s) have more than one primary wallet", revision
        )

    op.drop_index("idx_user_wallets_is_primary", table_name="user_wallets")
    op.create_index(
        "uq_user_wallets_primary",
        "user_wallets",
        ["user_id"],
        unique=True,
        postgresql_where=sa.text("is_primary"),
        sqlite_where=sa.text("is_primary"),
    )


def downgrade():
    op.drop_index("uq_user_wallets_primary", table_name="user_wallets")
    op.create_index(
        "idx_user_wallets_is_primary",
        "user_wallets",
        ["is_primary"],
        postgresql_where=sa.text("is_primary"),
        sqlite_where=sa.text("is_primary"),
    )
