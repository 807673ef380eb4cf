"""add payout wallet to authors

Every author is paid through exactly one wallet. Existing authors get their
owner's primary wallet; the step refuses to run if any author's user has
no wallet at all.

Revision ID: 20251218125038
Create Date: 2025-12-18 12:50:38
"""
from alembic import op
import sqlalchemy as sa
from scholarchain.core.errors import MigrationError
from scholarchain.migrations.versions._helpers import count_rows


revision = "20251218125038"


def upgrade():
    with op.batch_alter_table("authors", schema=None) as batch_op:
        batch_op.add_column(sa.Column("wallet_id", sa.String(length=255), nullable=True))
        batch_op.create_foreign_key(
            "fk_authors_wallet_id_wallets", "wallets", ["wallet_id"], ["wallet_id"], ondelete="RESTRICT"
        )
        batch_op.create_unique_constraint("uq_authors_wallet_id", ["wallet_id"])

    # Oldest primary link wins while duplicate primaries are still possible
    op.execute(
        """
        UPDATE authors SET wallet_id = (
            SELECT uw.wallet_id FROM user_wallets uw
            WHERE uw.user_id = authors.privy_id AND uw.is_primary
            ORDER BY uw.created_at, uw.wallet_id
            LIMIT 1
        )
        WHERE wallet_id IS NULL
        """
    )

    missing = count_rows("SELECT COUNT(*) FROM authors WHERE wallet_id IS NULL")
    if missing:
        raise MigrationError(
            f"{missing} author(s) have no primary wallet to backfill from", revision
        )

    with op.batch_alter_table("authors", schema=None) as batch_op:
        batch_op.alter_column("wallet_id", existing_type=sa.String(length=255), nullable=False)


def downgrade():
    with op.batch_alter_table("authors", schema=None) as batch_op:
        batch_op.drop_constraint("uq_authors_wallet_id", type_="unique")
        batch_op.drop_constraint("fk_authors_wallet_id_wallets", type_="foreignkey")
        batch_op.drop_column("wallet_id")
