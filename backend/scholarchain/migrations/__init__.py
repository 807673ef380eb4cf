from scholarchain.migrations.runner import (
    Migration,
    MigrationRunner,
    load_migrations,
    upgrade_database,
    downgrade_database,
    migration_status,
)

__all__ = [
    "Migration",
    "MigrationRunner",
    "load_migrations",
    "upgrade_database",
    "downgrade_database",
    "migration_status",
]
