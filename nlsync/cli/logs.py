"""Sync log commands."""

from pathlib import Path
from typing import Optional

import typer
from rich.panel import Panel
from rich.table import Table

from ..config import DEFAULT_CONFIG_PATH
from ..db import StoreError, SyncLogManager, validate_connection
from .common import CONFIG_OPTION_HELP, console, load_cli_config


def _log_manager(config_path: Path) -> SyncLogManager:
    config = load_cli_config(config_path)
    db_config = config.get_db_config()
    if not validate_connection(db_config):
        console.print("[red]❌ Database connection failed![/red]")
        raise typer.Exit(1)
    return SyncLogManager(db_config)


def logs_command(
    limit: int = typer.Option(10, "--limit", "-n", help="Number of runs to show", min=1),
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", help=CONFIG_OPTION_HELP),
) -> None:
    """Show recent sync runs."""
    manager = _log_manager(config_path)
    try:
        entries = manager.get_recent_logs(limit)
    except StoreError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)

    if not entries:
        console.print("[yellow]No sync runs recorded.[/yellow]")
        return

    table = Table(title="Recent Sync Runs")
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Started", style="cyan")
    table.add_column("Publication", style="blue")
    table.add_column("Issue", style="blue")
    table.add_column("Status", style="magenta")
    table.add_column("Found", justify="right")
    table.add_column("Processed", style="green", justify="right")
    table.add_column("Failed", style="red", justify="right")

    for entry in entries:
        table.add_row(
            str(entry.id),
            entry.started_at.strftime("%Y-%m-%d %H:%M"),
            entry.publication_ref or "-",
            entry.issue_id or "-",
            entry.status.value,
            str(entry.items_found),
            str(entry.items_processed),
            str(entry.items_failed),
        )

    console.print(table)


def stats_command(
    publication: Optional[str] = typer.Option(None, "--publication", "-p", help="Only this publication"),
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", help=CONFIG_OPTION_HELP),
) -> None:
    """Show aggregate sync statistics."""
    manager = _log_manager(config_path)
    try:
        stats = manager.get_sync_stats(publication)
    except StoreError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)

    console.print(
        Panel(
            f"Total syncs: {stats.total_syncs}\n"
            f"Successful: [green]{stats.successful_syncs}[/green]\n"
            f"Partial: [yellow]{stats.partial_syncs}[/yellow]\n"
            f"Failed: [red]{stats.failed_syncs}[/red]\n"
            f"Items processed: {stats.total_items_processed}",
            title=f"Sync Stats{f' - {publication}' if publication else ''}",
            style="blue",
        )
    )
