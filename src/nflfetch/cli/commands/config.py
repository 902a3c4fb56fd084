"""
Configuration commands.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.syntax import Syntax

from nflfetch.core.config.loader import ConfigError, load_app_config

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="Inspect configuration",
    no_args_is_help=True,
)


@app.command("show")
def show_config(
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML configuration file",
    ),
) -> None:
    """Print the effective configuration (defaults, file, environment)."""
    import yaml

    try:
        config = load_app_config(config_path)
    except ConfigError as e:
        err_console.print(f"[red]Error:[/red] {e.message}")
        if e.details:
            err_console.print(e.details)
        raise typer.Exit(1)

    rendered = yaml.safe_dump(config.model_dump(mode="json"), sort_keys=False)
    console.print(Syntax(rendered, "yaml"))
