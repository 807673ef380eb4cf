"""add publication value checks

Renames the status check to the ck_<table>_<rule> convention and bounds
price and citation royalty.

Revision ID: 20251219104000
Create Date: 2025-12-19 10:40:00
"""
from alembic import op
from scholarchain.migrations.versions._helpers import is_postgresql


revision = "20251219104000"

STATUS_CHECK = "status IN ('PENDING_ONCHAIN', 'PUBLISHED', 'FAILED')"
PRICE_CHECK = "price >= 0"
ROYALTY_CHECK = "citation_royalty_bps >= 0 AND citation_royalty_bps <= 10000"


def _rename_status_check(old: str, new: str):
    if is_postgresql():
        op.execute(f"ALTER TABLE publications RENAME CONSTRAINT {old} TO {new}")
        return
    with op.batch_alter_table("publications", schema=None) as batch_op:
        batch_op.drop_constraint(old, type_="check")
        batch_op.create_check_constraint(new, STATUS_CHECK)


def upgrade():
    _rename_status_check("valid_status", "ck_publications_status")
    with op.batch_alter_table("publications", schema=None) as batch_op:
        batch_op.create_check_constraint("ck_publications_price_non_negative", PRICE_CHECK)
        batch_op.create_check_constraint("ck_publications_royalty_bps_range", ROYALTY_CHECK)


def downgrade():
    with op.batch_alter_table("publications", schema=None) as batch_op:
        batch_op.drop_constraint("ck_publications_royalty_bps_range", type_="check")
        batch_op.drop_constraint("ck_publications_price_non_negative", type_="check")
    _rename_status_check("ck_publications_status", "valid_status")
