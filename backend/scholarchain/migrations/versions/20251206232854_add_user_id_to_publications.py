"""add owning user to publications

Revision ID: 20251206232854
Create Date: 2025-12-06 23:28:54
"""
from alembic import op
import sqlalchemy as sa


revision = "20251206232854"


def upgrade():
    with op.batch_alter_table("publications", schema=None) as batch_op:
        batch_op.add_column(sa.Column("user_id", sa.String(length=255), nullable=True))
        batch_op.create_foreign_key(
            "fk_publications_user_id_users", "users", ["user_id"], ["privy_id"], ondelete="SET NULL"
        )
        batch_op.create_index("ix_publications_user_id", ["user_id"], unique=False)


def downgrade():
    with op.batch_alter_table("publications", schema=None) as batch_op:
        batch_op.drop_index("ix_publications_user_id")
        batch_op.drop_constraint("fk_publications_user_id_users", type_="foreignkey")
        batch_op.drop_column("user_id")
