"""Command-line entry point for the schema migration runner."""
import asyncio
import logging
from typing import Optional
import typer
from rich.console import Console
from rich.table import Table
from scholarchain.core.config import get_settings
from scholarchain.core.database import build_engine
from scholarchain.core.errors import MigrationError
from scholarchain.migrations.runner import downgrade_database, migration_status, upgrade_database

app = typer.Typer(
    name="scholarchain-migrate",
    help="Apply, revert and inspect scholarchain schema migrations",
    add_completion=False,
)

console = Console()
logger = logging.getLogger(__name__)


def _database_url(database_url: Optional[str]) -> str:
    return database_url or get_settings().database_url


async def _with_engine(database_url: str, action):
    engine = build_engine(database_url)
    try:
        return await action(engine)
    finally:
        await engine.dispose()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every step")) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def upgrade(
    target: Optional[str] = typer.Option(None, "--target", "-t", help="Stop after this migration id"),
    database_url: Optional[str] = typer.Option(None, "--database-url", help="Override DATABASE_URL"),
) -> None:
    """Apply every pending migration (up to --target)."""
    try:
        applied = asyncio.run(
            _with_engine(_database_url(database_url), lambda e: upgrade_database(e, target))
        )
    except MigrationError as exc:
        console.print(f"[red]Migration failed:[/red] {exc}")
        raise typer.Exit(1)

    if not applied:
        console.print("[green]Schema is already up to date[/green]")
        return
    for revision in applied:
        console.print(f"  applied {revision}")
    console.print(f"[bold green]✓ {len(applied)} migration(s) applied[/bold green]")


@app.command()
def downgrade(
    steps: int = typer.Option(1, "--steps", "-n", min=1, help="Number of migrations to revert"),
    database_url: Optional[str] = typer.Option(None, "--database-url", help="Override DATABASE_URL"),
) -> None:
    """Revert the most recently applied migrations."""
    try:
        reverted = asyncio.run(
            _with_engine(_database_url(database_url), lambda e: downgrade_database(e, steps))
        )
    except MigrationError as exc:
        console.print(f"[red]Revert failed:[/red] {exc}")
        raise typer.Exit(1)

    for revision in reverted:
        console.print(f"  reverted {revision}")
    console.print(f"[bold yellow]{len(reverted)} migration(s) reverted[/bold yellow]")


@app.command()
def status(
    database_url: Optional[str] = typer.Option(None, "--database-url", help="Override DATABASE_URL"),
) -> None:
    """Show every known migration and when it was applied."""
    try:
        rows = asyncio.run(_with_engine(_database_url(database_url), migration_status))
    except MigrationError as exc:
        console.print(f"[red]Cannot read migration ledger:[/red] {exc}")
        raise typer.Exit(1)

    table = Table(title="Schema migrations")
    table.add_column("Identifier", style="cyan")
    table.add_column("Name")
    table.add_column("Applied at")
    for migration, applied_at in rows:
        table.add_row(
            migration.revision,
            migration.name,
            applied_at.isoformat() if applied_at else "[yellow]pending[/yellow]",
        )
    console.print(table)


if __name__ == "__main__":
    app()
