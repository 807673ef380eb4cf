"""create authors and publication_authors tables

Revision ID: 20251206232752
Create Date: 2025-12-06 23:27:52
"""
from alembic import op
import sqlalchemy as sa


revision = "20251206232752"


def upgrade():
    op.create_table(
        "authors",
        sa.Column("privy_id", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=100), nullable=True),
        sa.Column("affiliation", sa.String(length=200), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(
            ["privy_id"], ["users.privy_id"], name="fk_authors_privy_id_users", ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("privy_id", name="authors_pkey"),
        sa.UniqueConstraint("email", name="uq_authors_email"),
    )

    op.create_table(
        "publication_authors",
        sa.Column("publication_id", sa.Uuid(), nullable=False),
        sa.Column("author_id", sa.String(length=255), nullable=False),
        sa.Column("author_order", sa.Integer(), server_default="0", nullable=False),
        sa.ForeignKeyConstraint(
            ["publication_id"], ["publications.id"],
            name="fk_publication_authors_publication_id_publications", ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["author_id"], ["authors.privy_id"],
            name="fk_publication_authors_author_id_authors", ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("publication_id", "author_id", name="publication_authors_pkey"),
    )
    op.create_index("idx_publication_authors_publication_id", "publication_authors", ["publication_id"])
    op.create_index("idx_publication_authors_author_id", "publication_authors", ["author_id"])


def downgrade():
    op.drop_index("idx_publication_authors_author_id", table_name="publication_authors")
    op.drop_index("idx_publication_authors_publication_id", table_name="publication_authors")
    op.drop_table("publication_authors")
    op.drop_table("authors")
