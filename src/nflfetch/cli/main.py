"""
nflfetch CLI - Main entry point.

Fetches dataset files through the cached, throttled request client.
"""

from __future__ import annotations

from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console

from nflfetch import __app_name__, __version__

# Load environment variables from .env (if present)
load_dotenv()

console = Console()

app = typer.Typer(
    name=__app_name__,
    help="Fetch tabular datasets over HTTP with caching and throttling",
    rich_markup_mode="rich",
    no_args_is_help=True,
    pretty_exceptions_show_locals=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold cyan]{__app_name__}[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """nflfetch - typed client for static dataset files."""
    pass


# =============================================================================
# Import and register subcommand modules
# =============================================================================

from .commands import config, fetch  # noqa: E402

app.command("fetch")(fetch.fetch_url)
app.add_typer(config.app, name="config", help="Inspect configuration")


if __name__ == "__main__":
    app()
