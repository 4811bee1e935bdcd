"""Helpers shared by CLI commands."""

from pathlib import Path

import typer
from rich.console import Console

from ..config import Config, ConfigModel

console = Console()

CONFIG_OPTION_HELP = "Path to config.yaml"


def load_cli_config(config_path: Path, required: bool = True) -> Config:
    """Load the config file, or fall back to defaults when it is optional."""
    config = Config(config_path)
    try:
        config.config
    except FileNotFoundError:
        if required:
            console.print(f"[red]Config file not found: {config_path}. Run 'nlsync init' first.[/red]")
            raise typer.Exit(1)
        return Config(config_path, model=ConfigModel())
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    return config
