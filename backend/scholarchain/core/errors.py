"""Error taxonomy shared by the store, the migration runner and the API layer.

Storage constraint failures are translated into :class:`ConstraintViolation`
so callers can tell *which* rule a rejected write broke, regardless of
whether the database is PostgreSQL (asyncpg) or SQLite.
"""
import re
from sqlalchemy import Index, UniqueConstraint
from sqlalchemy.exc import IntegrityError

UNIQUE = "unique"
FOREIGN_KEY = "foreign_key"
CHECK = "check"
NOT_NULL = "not_null"

_PG_SQLSTATE_KINDS = {
    "23505": UNIQUE,
    "23503": FOREIGN_KEY,
    "23514": CHECK,
    "23502": NOT_NULL,
}

_SQLITE_PATTERNS = [
    (re.compile(r"UNIQUE constraint failed: (?P<cols>.+)$"), UNIQUE),
    (re.compile(r"FOREIGN KEY constraint failed"), FOREIGN_KEY),
    (re.compile(r"CHECK constraint failed: (?P<name>\S+)"), CHECK),
    (re.compile(r"NOT NULL constraint failed: (?P<cols>.+)$"), NOT_NULL),
]


class ScholarchainError(Exception):
    """Base class for errors raised by this package."""


class ConstraintViolation(ScholarchainError):
    def __init__(self, kind: str, constraint: str | None = None, message: str | None = None):
        self.kind = kind
        self.constraint = constraint
        self.message = message or _default_message(kind, constraint)
        super().__init__(self.message)


class NotFoundError(ScholarchainError):
    def __init__(self, entity: str, key=None):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found")


class InvalidStateError(ScholarchainError):
    pass


class MigrationError(ScholarchainError):
    def __init__(self, message: str, revision: str | None = None):
        self.revision = revision
        super().__init__(message)


def _default_message(kind: str, constraint: str | None) -> str:
    label = {
        UNIQUE: "Unique constraint violated",
        FOREIGN_KEY: "Referenced record does not exist or is still referenced",
        CHECK: "Check constraint violated",
        NOT_NULL: "Required value missing",
    }.get(kind, "Constraint violated")
    return f"{label}: {constraint}" if constraint else label


def translate_integrity_error(exc: IntegrityError) -> ConstraintViolation:
    """Map a driver IntegrityError onto a ConstraintViolation."""
    orig = exc.orig
    cause = getattr(orig, "__cause__", None)

    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None) or getattr(cause, "sqlstate", None)
    if sqlstate in _PG_SQLSTATE_KINDS:
        constraint = getattr(cause, "constraint_name", None) or getattr(orig, "constraint_name", None)
        if not constraint and sqlstate == "23502":
            column = getattr(cause, "column_name", None)
            table = getattr(cause, "table_name", None)
            constraint = f"{table}.{column}" if table and column else None
        return ConstraintViolation(_PG_SQLSTATE_KINDS[sqlstate], constraint)

    text = str(orig)
    for pattern, kind in _SQLITE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        groups = match.groupdict()
        if kind == UNIQUE:
            return ConstraintViolation(kind, _sqlite_unique_name(groups["cols"]))
        if kind == NOT_NULL:
            return ConstraintViolation(kind, groups["cols"].strip())
        return ConstraintViolation(kind, groups.get("name"))

    return ConstraintViolation("unknown", None, message=text)


def _sqlite_unique_name(cols_text: str) -> str:
    """Resolve 'table.col1, table.col2' to the declared constraint/index name."""
    # Deferred import: the ORM registry imports this module indirectly
    from scholarchain.core.database import Base

    qualified = [part.strip() for part in cols_text.split(",")]
    table_name = qualified[0].split(".")[0]
    columns = {part.split(".", 1)[1] for part in qualified}

    table = Base.metadata.tables.get(table_name)
    if table is None:
        return cols_text.strip()
    if {c.name for c in table.primary_key.columns} == columns:
        return f"{table_name}_pkey"
    for constraint in table.constraints:
        if isinstance(constraint, UniqueConstraint) and {c.name for c in constraint.columns} == columns:
            return constraint.name or cols_text.strip()
    for index in table.indexes:
        if isinstance(index, Index) and index.unique and {c.name for c in index.columns} == columns:
            return index.name
    return cols_text.strip()
