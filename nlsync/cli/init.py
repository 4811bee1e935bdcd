"""Init command implementation."""

from pathlib import Path
from typing import List, Optional

import typer
from rich.panel import Panel

from ..config import ConfigModel, save_config
from ..db import init_database, validate_connection
from .common import console


def init_command(
    config_dir: Path = typer.Option(
        Path.home() / ".config" / "nlsync",
        "--config-dir",
        "-c",
        help="Configuration directory",
    ),
    db_host: str = typer.Option("localhost", "--db-host", help="Postgres host"),
    db_port: int = typer.Option(5432, "--db-port", help="Postgres port"),
    db_name: str = typer.Option("nlsync", "--db-name", help="Database name"),
    db_user: str = typer.Option("nlsync_user", "--db-user", help="Database user"),
    publication: Optional[List[str]] = typer.Option(
        None,
        "--publication",
        "-p",
        help="Provider publication id to sync (repeatable)",
    ),
    create_schema: bool = typer.Option(
        True,
        "--create-schema/--no-create-schema",
        help="Create the database schema",
    ),
) -> None:
    """Initialize nlsync configuration and database."""
    console.print(Panel.fit("Newsletter sync - Initialization", style="bold blue"))

    config_dir.mkdir(parents=True, exist_ok=True)
    config_path = config_dir / "config.yaml"

    config = ConfigModel(
        postgres={
            "host": db_host,
            "port": db_port,
            "database": db_name,
            "user": db_user,
            "password_env": "NLSYNC_DB_PASSWORD",
        },
        provider={"publication_ids": list(publication or [])},
    )
    save_config(config, config_path)
    console.print(f"✅ Created config: {config_path}")

    if not create_schema:
        console.print("[dim]Skipping database schema[/dim]")
        return

    console.print("\n[bold]Testing database connection...[/bold]")
    db_config = config.postgres.model_dump()

    if not validate_connection(db_config):
        console.print(
            "[red]❌ Database connection failed![/red]\n"
            "Please ensure Postgres is running and credentials are correct.\n"
            "Set the password via environment variable: [bold]export NLSYNC_DB_PASSWORD=your_password[/bold]"
        )
        raise typer.Exit(1)

    console.print("✅ Database connection successful")

    console.print("\n[bold]Initializing database schema...[/bold]")
    try:
        init_database(db_config)
        console.print("✅ Database schema initialized")
    except Exception as e:
        console.print(f"[red]❌ Failed to initialize database: {e}[/red]")
        raise typer.Exit(1)

    console.print(
        Panel(
            f"[green]✅ nlsync initialized successfully![/green]\n\n"
            f"Configuration: {config_path}\n\n"
            f"Next steps:\n"
            f"1. Set database password: [bold]export NLSYNC_DB_PASSWORD=your_password[/bold]\n"
            f"2. Set provider API key: [bold]export NLSYNC_PROVIDER_API_KEY=your_key[/bold]\n"
            f"3. Run: [bold]nlsync sync --publication <id>[/bold]",
            style="green",
        )
    )
