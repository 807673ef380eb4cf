"""create citations table

Revision ID: 20251206232823
Create Date: 2025-12-06 23:28:23
"""
from alembic import op
import sqlalchemy as sa


revision = "20251206232823"


def upgrade():
    op.create_table(
        "citations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("citing_publication_id", sa.Uuid(), nullable=False),
        sa.Column("cited_publication_id", sa.Uuid(), nullable=False),
        sa.Column("citation_context", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(
            ["citing_publication_id"], ["publications.id"],
            name="fk_citations_citing_publication_id_publications", ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["cited_publication_id"], ["publications.id"],
            name="fk_citations_cited_publication_id_publications", ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="citations_pkey"),
        sa.UniqueConstraint("citing_publication_id", "cited_publication_id", name="uq_citations_pair"),
    )
    op.create_index("idx_citations_citing_publication_id", "citations", ["citing_publication_id"])
    op.create_index("idx_citations_cited_publication_id", "citations", ["cited_publication_id"])


def downgrade():
    op.drop_index("idx_citations_cited_publication_id", table_name="citations")
    op.drop_index("idx_citations_citing_publication_id", table_name="citations")
    op.drop_table("citations")
