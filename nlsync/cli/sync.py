"""Sync command implementation."""

import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, List, Optional, Tuple

import typer
from rich.panel import Panel
from rich.table import Table

from ..config import DEFAULT_CONFIG_PATH, Config
from ..db import (
    ArticleStorage,
    InMemoryArticleStore,
    InMemorySyncLogStore,
    StoreError,
    SyncLogManager,
    validate_connection,
)
from ..ingestion import FetchResult, IssueFetcher, IssueFetchError
from ..models import SyncStatus
from ..sync import SyncCoordinator, SyncReport
from .common import CONFIG_OPTION_HELP, console, load_cli_config
from .parse import read_issue_file

_STATUS_STYLES = {
    SyncStatus.SUCCESS: "green",
    SyncStatus.PARTIAL: "yellow",
    SyncStatus.FAILED: "red",
}


def _fetcher(config: Config) -> IssueFetcher:
    provider = config.config.provider
    return IssueFetcher(
        base_url=provider.base_url,
        api_key=config.get_provider_api_key(),
        timeout=provider.timeout,
        max_concurrent=provider.max_concurrent,
    )


def fetch_one(config: Config, publication_id: str, post_id: Optional[str] = None) -> Optional[Any]:
    """One issue from the provider API: a given post, or the latest one."""
    fetcher = _fetcher(config)
    try:
        if post_id:
            return asyncio.run(fetcher.fetch_issue(publication_id, post_id))
        return asyncio.run(fetcher.fetch_latest_issue(publication_id))
    except IssueFetchError as e:
        console.print(f"[red]❌ Failed to fetch issue: {e}[/red]")
        raise typer.Exit(1)


def fetch_configured(config: Config) -> List[FetchResult]:
    """Latest issue of every configured publication, fetched concurrently."""
    publication_ids = config.config.provider.publication_ids
    console.print(f"[dim]Fetching latest issues of {len(publication_ids)} publication(s)...[/dim]")
    return _fetcher(config).fetch_latest_sync(publication_ids)


def build_coordinator(config: Config, dry_run: bool) -> SyncCoordinator:
    """Coordinator over Postgres, or over throwaway in-memory stores."""
    if dry_run:
        article_store, log_store = InMemoryArticleStore(), InMemorySyncLogStore()
    else:
        db_config = config.get_db_config()
        console.print("[dim]Checking database connection...[/dim]")
        if not validate_connection(db_config):
            console.print("[red]❌ Database connection failed![/red]")
            console.print("Please check your database configuration and ensure Postgres is running.")
            raise typer.Exit(1)
        article_store, log_store = ArticleStorage(db_config), SyncLogManager(db_config)

    return SyncCoordinator(
        article_store,
        log_store,
        parser_config=config.config.parser,
        sync_config=config.config.sync,
    )


def run_cancellable(coordinator: SyncCoordinator, payload: Any, publication_ref: Optional[str]) -> SyncReport:
    """Run a sync in a worker thread; Ctrl-C stops it between items."""
    cancel_event = threading.Event()
    with ThreadPoolExecutor(max_workers=1) as pool:
        future = pool.submit(coordinator.sync_issue, payload, publication_ref, cancel_event)
        try:
            return future.result()
        except KeyboardInterrupt:
            console.print("\n[yellow]Sync interrupted, finishing the current item...[/yellow]")
            cancel_event.set()
            return future.result()


def print_sync_report(report: SyncReport) -> None:
    """Print per-item outcomes and a run summary."""
    if report.outcomes:
        table = Table(title="Sync Outcomes")
        table.add_column("#", style="dim", justify="right")
        table.add_column("Title", style="cyan")
        table.add_column("Source item", style="blue")
        table.add_column("Result", style="magenta")
        table.add_column("Article", justify="right")

        for outcome in report.outcomes:
            result = outcome.action.value if outcome.action else f"[red]error: {outcome.error}[/red]"
            table.add_row(
                str(outcome.number),
                outcome.title,
                outcome.source_id or "-",
                result,
                str(outcome.article_id) if outcome.article_id is not None else "-",
            )
        console.print(table)

    style = _STATUS_STYLES.get(report.status, "white")
    summary = (
        f"Status: [{style}]{report.status.value}[/{style}]\n"
        f"Issue: {report.issue_id or '-'}\n"
        f"Items found: {report.items_found}\n"
        f"Processed: {report.processed}  Failed: {report.failed}\n"
        f"Sync log: {report.log_id}"
    )
    if report.cancelled:
        summary += "\n[yellow]Cancelled before all items were processed[/yellow]"
    for error in report.errors:
        summary += f"\n[red]- {error}[/red]"
    console.print(Panel(summary, title="Sync Summary", style=style))


def sync_command(
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Sync an issue JSON file"),
    publication: Optional[str] = typer.Option(
        None,
        "--publication",
        "-p",
        help="Sync the latest issue of this provider publication",
    ),
    post: Optional[str] = typer.Option(
        None,
        "--post",
        help="With --publication, sync this provider post instead of the latest",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Run against in-memory stores instead of Postgres",
    ),
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", help=CONFIG_OPTION_HELP),
) -> None:
    """
    Parse issues and upsert their items as articles.

    Without --file or --publication, the latest issue of every publication
    listed under provider.publication_ids is synced.
    """
    if file is not None and publication is not None:
        console.print("[red]Pass at most one of --file or --publication.[/red]")
        raise typer.Exit(2)
    if post is not None and publication is None:
        console.print("[red]--post needs --publication.[/red]")
        raise typer.Exit(2)

    config = load_cli_config(config_path, required=not dry_run)

    # (publication_ref, payload) pairs, synced in order
    jobs: List[Tuple[Optional[str], Any]] = []
    fetch_failures = 0
    if file is not None:
        jobs.append((None, read_issue_file(file)))
    elif publication is not None:
        payload = fetch_one(config, publication, post)
        if payload is None:
            console.print(f"[yellow]Publication {publication} has no issues yet.[/yellow]")
            return
        jobs.append((publication, payload))
    else:
        if not config.config.provider.publication_ids:
            console.print("[red]No publications configured.[/red]")
            console.print("Pass --file or --publication, or list provider.publication_ids in the config.")
            raise typer.Exit(2)
        for fetched in fetch_configured(config):
            if not fetched.success:
                fetch_failures += 1
                console.print(f"[red]❌ {fetched.publication_id}: {fetched.error}[/red]")
            elif fetched.issue is None:
                console.print(f"[yellow]Publication {fetched.publication_id} has no issues yet.[/yellow]")
            else:
                jobs.append((fetched.publication_id, fetched.issue))

    if not jobs:
        if fetch_failures:
            raise typer.Exit(1)
        return

    coordinator = build_coordinator(config, dry_run)
    if dry_run:
        console.print("[dim]Dry run: nothing is written to the database[/dim]")

    failed_runs = 0
    for publication_ref, payload in jobs:
        try:
            report = run_cancellable(coordinator, payload, publication_ref)
        except StoreError as e:
            console.print(f"[red]❌ Sync log could not be recorded: {e}[/red]")
            raise typer.Exit(1)
        print_sync_report(report)
        if report.status == SyncStatus.FAILED:
            failed_runs += 1
        if report.cancelled:
            break

    if failed_runs or fetch_failures:
        raise typer.Exit(1)
