"""Main CLI application."""

import logging

import typer
from dotenv import load_dotenv
from rich.logging import RichHandler

# Load .env file if it exists
load_dotenv()

from .init import init_command
from .logs import logs_command, stats_command
from .parse import parse_command
from .sync import sync_command

app = typer.Typer(
    name="nlsync",
    help="Newsletter sync - split newsletter issues into articles and upsert them",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


# Register commands
app.command("init")(init_command)
app.command("parse")(parse_command)
app.command("sync")(sync_command)
app.command("logs")(logs_command)
app.command("stats")(stats_command)


if __name__ == "__main__":
    app()
