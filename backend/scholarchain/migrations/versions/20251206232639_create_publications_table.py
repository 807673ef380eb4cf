"""create publications table

Revision ID: 20251206232639
Create Date: 2025-12-06 23:26:39
"""
from alembic import op
import sqlalchemy as sa
from scholarchain.migrations.versions._helpers import empty_tag_list_default, tag_list_type


revision = "20251206232639"


def upgrade():
    op.create_table(
        "publications",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column("about", sa.Text(), nullable=True),
        sa.Column("tags", tag_list_type(), server_default=empty_tag_list_default(), nullable=False),
        sa.Column("s3key", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="publications_pkey"),
    )


def downgrade():
    op.drop_table("publications")
