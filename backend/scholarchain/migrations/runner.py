"""Ordered, append-only schema migrations with a persisted ledger.

Each step lives in ``scholarchain/migrations/versions`` as a module named
``<timestamp>_<slug>.py`` that defines ``revision`` plus ``upgrade()`` and
``downgrade()`` written against Alembic's ``op`` proxy. The runner applies
steps in identifier order, one transaction per step, and records every
applied identifier in ``schema_migrations``.
"""
import importlib
import logging
import pkgutil
from dataclasses import dataclass
from datetime import datetime, timezone
from types import ModuleType
from typing import Callable
from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import Column, DateTime, MetaData, String, Table, delete, insert, select
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine
from scholarchain.core.errors import MigrationError

logger = logging.getLogger(__name__)

VERSIONS_PACKAGE = "scholarchain.migrations.versions"

ledger_metadata = MetaData()
schema_migrations = Table(
    "schema_migrations",
    ledger_metadata,
    Column("version", String(32), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("applied_at", DateTime(timezone=True), nullable=False),
)


@dataclass(frozen=True)
class Migration:
    revision: str
    name: str
    upgrade: Callable[[], None]
    downgrade: Callable[[], None] | None = None

    @classmethod
    def from_module(cls, module: ModuleType) -> "Migration":
        revision = getattr(module, "revision", None)
        upgrade = getattr(module, "upgrade", None)
        if not revision or not callable(upgrade):
            raise MigrationError(f"{module.__name__} must define 'revision' and 'upgrade()'")
        name = module.__name__.rsplit(".", 1)[-1]
        if name.startswith(f"{revision}_"):
            name = name[len(revision) + 1:]
        downgrade = getattr(module, "downgrade", None)
        return cls(
            revision=str(revision),
            name=name,
            upgrade=upgrade,
            downgrade=downgrade if callable(downgrade) else None,
        )


def load_migrations(package: str = VERSIONS_PACKAGE) -> list[Migration]:
    """Import every step in ``package`` and return them in identifier order."""
    pkg = importlib.import_module(package)
    migrations: dict[str, Migration] = {}
    for info in pkgutil.iter_modules(pkg.__path__):
        if info.ispkg or info.name.startswith("_"):
            continue
        migration = Migration.from_module(importlib.import_module(f"{package}.{info.name}"))
        if migration.revision in migrations:
            raise MigrationError(
                f"Duplicate migration identifier {migration.revision}", migration.revision
            )
        migrations[migration.revision] = migration
    return [migrations[rev] for rev in sorted(migrations)]


class MigrationRunner:
    def __init__(self, migrations: list[Migration] | None = None):
        self.migrations = sorted(
            migrations if migrations is not None else load_migrations(),
            key=lambda m: m.revision,
        )
        revisions = [m.revision for m in self.migrations]
        if len(set(revisions)) != len(revisions):
            raise MigrationError("Duplicate migration identifiers")
        self._by_revision = {m.revision: m for m in self.migrations}

    @property
    def head(self) -> str | None:
        return self.migrations[-1].revision if self.migrations else None

    def ensure_ledger(self, connection: Connection) -> None:
        with connection.begin():
            ledger_metadata.create_all(connection, checkfirst=True)

    def applied(self, connection: Connection) -> dict[str, datetime]:
        self.ensure_ledger(connection)
        with connection.begin():
            rows = connection.execute(
                select(schema_migrations.c.version, schema_migrations.c.applied_at)
            ).all()
        return {row.version: row.applied_at for row in rows}

    def status(self, connection: Connection) -> list[tuple[Migration, datetime | None]]:
        applied = self.applied(connection)
        return [(m, applied.get(m.revision)) for m in self.migrations]

    def _check_drift(self, applied: dict[str, datetime]) -> None:
        unknown = sorted(set(applied) - set(self._by_revision))
        if unknown:
            raise MigrationError(
                f"Database has migrations unknown to this build: {', '.join(unknown)}", unknown[0]
            )
        if not applied:
            return
        newest = max(applied)
        stale = [m.revision for m in self.migrations if m.revision < newest and m.revision not in applied]
        if stale:
            raise MigrationError(
                f"Pending migrations predate the newest applied one ({newest}): {', '.join(stale)}",
                stale[0],
            )

    def apply(self, connection: Connection, target: str | None = None) -> list[str]:
        """Run every pending ``upgrade`` up to and including ``target``."""
        if target is not None and target not in self._by_revision:
            raise MigrationError(f"Unknown migration target {target}", target)

        applied = self.applied(connection)
        self._check_drift(applied)

        pending = [
            m for m in self.migrations
            if m.revision not in applied and (target is None or m.revision <= target)
        ]
        if not pending:
            logger.info("Schema is up to date at %s", max(applied) if applied else "<empty>")
            return []

        done: list[str] = []
        with _foreign_keys_relaxed(connection):
            for migration in pending:
                self._run(connection, migration, "upgrade")
                done.append(migration.revision)
        return done

    def revert(self, connection: Connection, steps: int = 1) -> list[str]:
        """Run ``downgrade`` for the ``steps`` most recently applied migrations."""
        if steps < 1:
            raise MigrationError("steps must be at least 1")

        applied = self.applied(connection)
        self._check_drift(applied)

        to_revert = [self._by_revision[rev] for rev in sorted(applied, reverse=True)[:steps]]
        missing = [m.revision for m in to_revert if m.downgrade is None]
        if missing:
            raise MigrationError(
                f"Cannot revert: no downgrade for {', '.join(missing)}", missing[0]
            )

        done: list[str] = []
        with _foreign_keys_relaxed(connection):
            for migration in to_revert:
                self._run(connection, migration, "downgrade")
                done.append(migration.revision)
        return done

    def _run(self, connection: Connection, migration: Migration, direction: str) -> None:
        step = migration.upgrade if direction == "upgrade" else migration.downgrade
        try:
            with connection.begin():
                context = MigrationContext.configure(connection)
                with Operations.context(context):
                    step()
                if direction == "upgrade":
                    connection.execute(
                        insert(schema_migrations).values(
                            version=migration.revision,
                            name=migration.name,
                            applied_at=datetime.now(timezone.utc),
                        )
                    )
                else:
                    connection.execute(
                        delete(schema_migrations).where(schema_migrations.c.version == migration.revision)
                    )
        except MigrationError:
            logger.error("Migration %s (%s) %s refused", migration.revision, migration.name, direction)
            raise
        except Exception as exc:
            logger.error(
                "Migration %s (%s) %s failed: %s", migration.revision, migration.name, direction, exc
            )
            raise MigrationError(
                f"Migration {migration.revision} ({migration.name}) {direction} failed: {exc}",
                migration.revision,
            ) from exc
        logger.info("Migration %s (%s) %s applied", migration.revision, migration.name, direction)


class _foreign_keys_relaxed:
    """Turn off SQLite FK enforcement so batch table rebuilds cannot cascade.

    PRAGMA foreign_keys is ignored inside a transaction, so it is issued on the
    raw DBAPI connection before any step begins.
    """

    def __init__(self, connection: Connection):
        self.connection = connection
        self.enabled = connection.dialect.name == "sqlite"

    def _pragma(self, value: str) -> None:
        cursor = self.connection.connection.dbapi_connection.cursor()
        try:
            cursor.execute(f"PRAGMA foreign_keys={value}")
        finally:
            cursor.close()

    def __enter__(self):
        if self.enabled:
            self._pragma("OFF")
        return self

    def __exit__(self, exc_type, exc, tb):
        if self.enabled:
            self._pragma("ON")
        return False


async def upgrade_database(engine: AsyncEngine, target: str | None = None,
                           runner: MigrationRunner | None = None) -> list[str]:
    runner = runner or MigrationRunner()
    async with engine.connect() as conn:
        return await conn.run_sync(lambda sync_conn: runner.apply(sync_conn, target))


async def downgrade_database(engine: AsyncEngine, steps: int = 1,
                             runner: MigrationRunner | None = None) -> list[str]:
    runner = runner or MigrationRunner()
    async with engine.connect() as conn:
        return await conn.run_sync(lambda sync_conn: runner.revert(sync_conn, steps))


async def migration_status(engine: AsyncEngine,
                           runner: MigrationRunner | None = None) -> list[tuple[Migration, datetime | None]]:
    runner = runner or MigrationRunner()
    async with engine.connect() as conn:
        return await conn.run_sync(runner.status)
