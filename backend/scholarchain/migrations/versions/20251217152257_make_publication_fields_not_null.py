"""make publication fields not null

Publications become mandatory-owner rows that disappear with their owner.
Existing rows without an owner, abstract or file key cannot be reconciled
automatically, so the step refuses to run until they are fixed by hand.

Revision ID: 20251217152257
Create Date: 2025-12-17 15:22:57
"""
from alembic import op
import sqlalchemy as sa
from scholarchain.core.errors import MigrationError
from scholarchain.migrations.versions._helpers import count_rows


revision = "20251217152257"


def upgrade():
    for column in ("user_id", "about", "s3key"):
        missing = count_rows(f"SELECT COUNT(*) FROM publications WHERE {column} IS NULL")
        if missing:
            raise MigrationError(
                f"{missing} publication(s) have no {column}; fix them before applying this migration",
                revision,
            )

    op.execute("UPDATE publications SET price = 0 WHERE price IS NULL")
    op.execute("UPDATE publications SET citation_royalty_bps = 0 WHERE citation_royalty_bps IS NULL")

    with op.batch_alter_table("publications", schema=None) as batch_op:
        batch_op.alter_column("user_id", existing_type=sa.String(length=255), nullable=False)
        batch_op.alter_column("about", existing_type=sa.Text(), nullable=False)
        batch_op.alter_column("s3key", existing_type=sa.String(), nullable=False)
        batch_op.alter_column(
            "price", existing_type=sa.BigInteger(), existing_server_default="0", nullable=False
        )
        batch_op.alter_column(
            "citation_royalty_bps", existing_type=sa.BigInteger(), existing_server_default="0", nullable=False
        )
        batch_op.drop_constraint("fk_publications_user_id_users", type_="foreignkey")
        batch_op.create_foreign_key(
            "fk_publications_user_id_users", "users", ["user_id"], ["privy_id"], ondelete="CASCADE"
        )


def downgrade():
    with op.batch_alter_table("publications", schema=None) as batch_op:
        batch_op.drop_constraint("fk_publications_user_id_users", type_="foreignkey")
        batch_op.create_foreign_key(
            "fk_publications_user_id_users", "users", ["user_id"], ["privy_id"], ondelete="SET NULL"
        )
        batch_op.alter_column(
            "citation_royalty_bps", existing_type=sa.BigInteger(), existing_server_default="0", nullable=True
        )
        batch_op.alter_column(
            "price", existing_type=sa.BigInteger(), existing_server_default="0", nullable=True
        )
        batch_op.alter_column("s3key", existing_type=sa.String(), nullable=True)
        batch_op.alter_column("about", existing_type=sa.Text(), nullable=True)
        batch_op.alter_column("user_id", existing_type=sa.String(length=255), nullable=True)
