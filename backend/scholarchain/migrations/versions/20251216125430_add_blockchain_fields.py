"""add on-chain publication fields

Revision ID: 20251216125430
Create Date: 2025-12-16 12:54:30
"""
from alembic import op
import sqlalchemy as sa


revision = "20251216125430"

STATUSES = ("PENDING_ONCHAIN", "PUBLISHED", "FAILED")


def upgrade():
    statuses = ", ".join(f"'{s}'" for s in STATUSES)
    with op.batch_alter_table("publications", schema=None) as batch_op:
        batch_op.add_column(sa.Column("transaction_hash", sa.String(length=255), nullable=True))
        batch_op.add_column(
            sa.Column("status", sa.String(length=50), server_default="PENDING_ONCHAIN", nullable=False)
        )
        batch_op.add_column(sa.Column("price", sa.BigInteger(), server_default="0", nullable=True))
        batch_op.add_column(
            sa.Column("citation_royalty_bps", sa.BigInteger(), server_default="0", nullable=True)
        )
        batch_op.create_check_constraint("valid_status", f"status IN ({statuses})")
        batch_op.create_index("ix_publications_transaction_hash", ["transaction_hash"], unique=False)
        batch_op.create_index("ix_publications_status", ["status"], unique=False)


def downgrade():
    with op.batch_alter_table("publications", schema=None) as batch_op:
        batch_op.drop_index("ix_publications_status")
        batch_op.drop_index("ix_publications_transaction_hash")
        batch_op.drop_constraint("valid_status", type_="check")
        batch_op.drop_column("citation_royalty_bps")
        batch_op.drop_column("price")
        batch_op.drop_column("status")
        batch_op.drop_column("transaction_hash")
