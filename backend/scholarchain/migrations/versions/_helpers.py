"""Dialect helpers shared by migration steps."""
import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql


def is_postgresql() -> bool:
    return op.get_bind().dialect.name == "postgresql"


def tag_list_type():
    return postgresql.ARRAY(sa.String()).with_variant(sa.JSON(), "sqlite")


def empty_tag_list_default():
    return sa.text("'{}'") if is_postgresql() else sa.text("'[]'")


def count_rows(sql: str) -> int:
    return op.get_bind().execute(sa.text(sql)).scalar() or 0
