"""forbid self-citation

Revision ID: 20251219110000
Create Date: 2025-12-19 11:00:00
"""
from alembic import op
from scholarchain.core.errors import MigrationError
from scholarchain.migrations.versions._helpers import count_rows


revision = "20251219110000"


def upgrade():
    self_citations = count_rows(
        "SELECT COUNT(*) FROM citations WHERE citing_publication_id = cited_publication_id"
    )
    if self_citations:
        raise MigrationError(f"{self_citations} citation(s) cite their own publication", revision)

    with op.batch_alter_table("citations", schema=None) as batch_op:
        batch_op.create_check_constraint(
            "ck_citations_not_self", "citing_publication_id <> cited_publication_id"
        )


def downgrade():
    with op.batch_alter_table("citations", schema=None) as batch_op:
        batch_op.drop_constraint("ck_citations_not_self", type_="check")
