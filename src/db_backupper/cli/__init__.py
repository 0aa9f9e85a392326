"""CLI for full-database backup and restore.

Usage:
    DB_PROFILE=local db-backupper export
    db-backupper --profile local export --tables users,posts --output tmp/users.tgz
    db-backupper --profile local import uploads/backup.tgz --yes
    db-backupper --profile local tables
    db-backupper inspect tmp/backup.tgz

Commands:
    export   - Export tables to a .tgz archive
    import   - Replace tables with an archive's contents (rolls back on failure)
    tables   - List the tables in scope with row counts
    inspect  - List the files inside an archive

Exit codes for ``import``:
    0 - imported
    1 - import failed, database restored from the safety backup
    2 - safety backup failed, nothing was changed
    3 - rollback failed, database state unknown (operator action required)
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from db_backupper.adapters.base import DatabaseClient
from db_backupper.backup.archive import ArchiveBuilder
from db_backupper.backup.models import ImportOutcome
from db_backupper.backup.orchestrator import BackupOrchestrator
from db_backupper.backup.serializer import tables_in_manifest
from db_backupper.config.loader import load_db_config, verbose_from_env
from db_backupper.config.models import BackupSettings
from db_backupper.errors import ArchiveError, ExportError, SafetyBackupFailed
from db_backupper.factory import ProfileNotFoundError, get_adapter

console = Console()

EXIT_OK = 0
EXIT_RESTORED_FROM_SAFETY = 1
EXIT_SAFETY_BACKUP_FAILED = 2
EXIT_ROLLBACK_FAILED = 3


# ============================================================================
# Helpers
# ============================================================================


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _parse_tables(value: str | None) -> list[str] | None:
    """Split a comma-separated ``--tables`` value; ``None`` means all tables."""
    if not value:
        return None
    return [t.strip() for t in value.split(",") if t.strip()]


def _load_settings(args: argparse.Namespace) -> BackupSettings:
    """Load ``[backup]`` settings from db.toml, or defaults when absent.

    An explicit ``--config`` that does not exist is an error.
    """
    config_path = Path(args.config) if args.config else Path.cwd() / "db.toml"
    if config_path.exists() or args.config:
        settings = load_db_config(config_path).backup
    else:
        settings = BackupSettings()
    if args.root:
        settings = settings.model_copy(update={"root_dir": args.root})
    return settings


async def _connect(args: argparse.Namespace) -> DatabaseClient:
    return await get_adapter(
        profile_name=args.profile,
        env_prefix=args.env_prefix,
        config_path=Path(args.config) if args.config else None,
    )


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_export(args: argparse.Namespace, settings: BackupSettings) -> int:
    """Async implementation for export command.

    Returns:
        0 on success, 1 on failure.
    """
    try:
        adapter = await _connect(args)
    except (ProfileNotFoundError, KeyError, FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    try:
        orchestrator = BackupOrchestrator(adapter, settings=settings)
        console.print("Exporting database...", style="dim")
        archive = await orchestrator.export(
            table_filter=_parse_tables(args.tables),
            destination=args.output,
        )
    except ExportError as e:
        console.print(f"[bold red]x[/bold red] {e}")
        return 1
    finally:
        await adapter.close()

    console.print(f"[bold green]v[/bold green] Archive written: [cyan]{archive}[/cyan]")
    for record in orchestrator.session.record_files:
        console.print(f"  {record.table}: {record.row_count} rows", style="dim")
    return 0


async def _async_import(args: argparse.Namespace, settings: BackupSettings) -> int:
    """Async implementation for import command.

    Returns:
        Exit code (see module docstring).
    """
    try:
        adapter = await _connect(args)
    except (ProfileNotFoundError, KeyError, FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    try:
        orchestrator = BackupOrchestrator(adapter, settings=settings)
        console.print("Importing archive...", style="dim")
        result = await orchestrator.import_archive(
            args.archive,
            table_filter=_parse_tables(args.tables),
        )
    except SafetyBackupFailed as e:
        console.print(f"[bold red]x[/bold red] {e}")
        console.print("[yellow]Nothing was changed.[/yellow]")
        return EXIT_SAFETY_BACKUP_FAILED
    finally:
        await adapter.close()

    if result.outcome is ImportOutcome.SUCCESS:
        console.print(
            f"[bold green]v[/bold green] Imported {len(result.tables)} tables: "
            f"{', '.join(result.tables)}"
        )
        return EXIT_OK

    if result.outcome is ImportOutcome.FAILED_RESTORED_FROM_SAFETY:
        console.print(f"[bold red]x[/bold red] Import failed: {result.error}")
        console.print("[yellow]The database was restored from the safety backup.[/yellow]")
        return EXIT_RESTORED_FROM_SAFETY

    console.print("[bold red]ROLLBACK FAILED - DATABASE STATE UNKNOWN[/bold red]")
    console.print(f"  Import error: {result.error}")
    console.print(f"  Rollback error: {result.rollback_error}")
    console.print(f"  Safety archive kept at: [cyan]{result.safety_archive}[/cyan]")
    console.print("[bold]Stop and restore the database manually.[/bold]")
    return EXIT_ROLLBACK_FAILED


async def _async_tables(args: argparse.Namespace, settings: BackupSettings) -> int:
    """Async implementation for tables command.

    Returns:
        0 on success, 1 on failure.
    """
    try:
        adapter = await _connect(args)
    except (ProfileNotFoundError, KeyError, FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    try:
        orchestrator = BackupOrchestrator(adapter, settings=settings)
        tables = await orchestrator.tables(_parse_tables(args.tables))
        counts = {table: len(await adapter.select_all(table)) for table in tables}
    except Exception as e:
        console.print(f"[bold red]x[/bold red] {e}")
        return 1
    finally:
        await adapter.close()

    table = Table(title="Tables in Scope", show_header=True, header_style="bold")
    table.add_column("Table")
    table.add_column("Rows", justify="right")
    for name, count in counts.items():
        table.add_row(name, str(count))
    console.print(table)
    return 0


# ============================================================================
# Command wrappers
# ============================================================================


def cmd_export(args: argparse.Namespace, settings: BackupSettings) -> int:
    """Export tables to an archive.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_export(args, settings))


def cmd_import(args: argparse.Namespace, settings: BackupSettings) -> int:
    """Replace tables with an archive's contents.

    Asks for confirmation unless ``--yes`` is given.
    """
    if not args.yes:
        console.print(f"[yellow]This will replace live data with: {args.archive}[/yellow]")
        response = input("Continue? [y/N] ")
        if response.lower() not in ["y", "yes"]:
            console.print("Cancelled.")
            return EXIT_OK

    return asyncio.run(_async_import(args, settings))


def cmd_tables(args: argparse.Namespace, settings: BackupSettings) -> int:
    """List the tables in scope with row counts."""
    return asyncio.run(_async_tables(args, settings))


def cmd_inspect(args: argparse.Namespace, settings: BackupSettings) -> int:
    """List an archive's members without touching the database.

    Returns:
        0 on success, 1 if the archive cannot be read.
    """
    builder = ArchiveBuilder(settings.tar_command, settings.archive_timeout)
    try:
        members = builder.list_members(args.archive)
    except ArchiveError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    scratch_prefix = settings.scratch_dir.rstrip("/")
    tables = set(tables_in_manifest(members, scratch_prefix))

    table = Table(title=f"Archive: {args.archive}", show_header=True, header_style="bold")
    table.add_column("Path")
    table.add_column("Kind")
    for member in members:
        is_record = Path(member).stem in tables and member.startswith(f"{scratch_prefix}/")
        table.add_row(member, "table" if is_record else "attachment")
    console.print(table)
    console.print(f"[dim]{len(tables)} tables, {len(members) - len(tables)} attachments[/dim]")
    return 0


# ============================================================================
# Main entry point
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="db-backupper",
        description="Full-database backup and restore with automatic rollback",
    )

    parser.add_argument("--config", help="Path to db.toml (default: ./db.toml)")
    parser.add_argument("--profile", help="Database profile from db.toml")
    parser.add_argument(
        "--env-prefix",
        default="",
        help=(
            "Prefix for environment variable lookup "
            "(e.g., --env-prefix APP_ reads APP_DB_PROFILE)"
        ),
    )
    parser.add_argument("--root", help="Application root directory (overrides db.toml)")
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log progress (also enabled by VERBOSE=1)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    p_export = subparsers.add_parser("export", help="Export tables to a .tgz archive")
    p_export.add_argument("--tables", help="Comma-separated tables (default: all)")
    p_export.add_argument("--output", "-o", help="Archive path (default: tmp/backup.tgz)")
    p_export.set_defaults(func=cmd_export)

    p_import = subparsers.add_parser(
        "import",
        help="Replace tables with an archive's contents",
    )
    p_import.add_argument("archive", help="Archive produced by export")
    p_import.add_argument("--tables", help="Comma-separated tables (default: all)")
    p_import.add_argument("--yes", "-y", action="store_true", help="Skip confirmation prompt")
    p_import.set_defaults(func=cmd_import)

    p_tables = subparsers.add_parser("tables", help="List tables in scope with row counts")
    p_tables.add_argument("--tables", help="Comma-separated tables (default: all)")
    p_tables.set_defaults(func=cmd_tables)

    p_inspect = subparsers.add_parser("inspect", help="List the files inside an archive")
    p_inspect.add_argument("archive", help="Archive to inspect")
    p_inspect.set_defaults(func=cmd_inspect)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = _load_settings(args)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    _configure_logging(args.verbose or settings.verbose or verbose_from_env())
    return args.func(args, settings)


if __name__ == "__main__":
    sys.exit(main())
