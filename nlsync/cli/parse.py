"""Parse command implementation."""

import json
from pathlib import Path
from typing import Any

import typer
from rich.panel import Panel
from rich.table import Table

from ..config import DEFAULT_CONFIG_PATH
from ..parsing import NewsletterParser, ParseResult
from .common import CONFIG_OPTION_HELP, console, load_cli_config


def read_issue_file(path: Path) -> Any:
    """Load an issue payload from a JSON file.

    Accepts a bare post object or a provider response wrapping it in ``data``.
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        console.print(f"[red]File not found: {path}[/red]")
        raise typer.Exit(1)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in {path}: {e}[/red]")
        raise typer.Exit(1)

    if isinstance(raw, dict) and isinstance(raw.get("data"), dict):
        return raw["data"]
    if isinstance(raw, dict) and isinstance(raw.get("data"), list) and raw["data"]:
        return raw["data"][0]
    return raw


def print_parse_result(result: ParseResult) -> None:
    """Print parsed items as a table with an issue summary panel."""
    metadata = result.metadata
    console.print(
        Panel(
            f"[bold]{metadata.title}[/bold]\n"
            f"Issue: {metadata.issue_id or '-'}\n"
            f"Published: {metadata.publish_date}\n"
            f"Strategy: {metadata.strategy}\n"
            f"Categories: {', '.join(metadata.categories) or '-'}",
            title=f"{metadata.total_items} items",
            style="blue",
        )
    )
    if not result.items:
        console.print("[yellow]No items extracted.[/yellow]")
        return

    table = Table(title="Extracted Items")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Category", style="magenta")
    table.add_column("Title", style="cyan")
    table.add_column("Links", style="green", justify="right")
    table.add_column("Image", style="yellow")

    for item in result.items:
        table.add_row(
            str(item.number),
            item.category,
            item.title,
            str(item.link_count),
            "✓" if item.image_url else "✗",
        )

    console.print(table)


def parse_command(
    file: Path = typer.Argument(..., help="Issue JSON file"),
    as_json: bool = typer.Option(False, "--json", help="Print the parse result as JSON"),
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", help=CONFIG_OPTION_HELP),
) -> None:
    """Split an issue file into news items without touching the store."""
    config = load_cli_config(config_path, required=False)
    payload = read_issue_file(file)

    result = NewsletterParser(config.config.parser).parse(payload)

    if as_json:
        console.print_json(json.dumps(result.model_dump(by_alias=True), ensure_ascii=False))
    else:
        print_parse_result(result)
