"""
Fetch command - download one URL through the request client.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Optional

import orjson
import typer
from rich.console import Console
from rich.table import Table

from nflfetch.core.client import HttpResponse, RequestClient, RequestOptions
from nflfetch.core.config.loader import ConfigError, load_app_config
from nflfetch.core.config.models import AppConfig
from nflfetch.core.decode import ContentKind
from nflfetch.core.errors import NflFetchError
from nflfetch.core.logging import setup_logging_from_config
from nflfetch.core.transport import HttpxTransport

console = Console()
err_console = Console(stderr=True)


def _payload_bytes(response: HttpResponse) -> bytes:
    data = response.data
    if data is None:
        return b""
    if isinstance(data, bytes):
        return data
    if isinstance(data, str):
        return data.encode("utf-8")
    return orjson.dumps(data, option=orjson.OPT_INDENT_2)


async def _fetch(config: AppConfig, url: str, options: RequestOptions) -> HttpResponse:
    transport = HttpxTransport(config.client.http)
    async with RequestClient(config.client, transport=transport) as client:
        return await client.request(url, options)


def _summary_table(response: HttpResponse, size: int) -> Table:
    table = Table(show_header=False, box=None)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    status_style = "green" if response.ok else "red"
    table.add_row("Status", f"[{status_style}]{response.status}[/{status_style}]")
    table.add_row("URL", response.url)
    table.add_row("Content", response.content_kind.value if response.content_kind else "-")
    table.add_row("Size", f"{size:,} bytes")
    table.add_row("Attempts", str(response.attempts))
    table.add_row("Elapsed", f"{response.elapsed_ms:.0f} ms")
    table.add_row("From cache", "yes" if response.from_cache else "no")
    return table


def fetch_url(
    url: str = typer.Argument(..., help="URL (or path relative to http.base_url)"),
    fmt: Optional[str] = typer.Option(
        None,
        "--format",
        "-f",
        help="Force payload kind: json, text, binary (or csv, parquet)",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the body to this file",
    ),
    no_cache: bool = typer.Option(False, "--no-cache", help="Bypass the response cache"),
    timeout_ms: Optional[int] = typer.Option(None, "--timeout", help="Timeout in milliseconds"),
    retries: Optional[int] = typer.Option(None, "--retries", help="Retries after the first attempt"),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML configuration file",
    ),
) -> None:
    """Fetch a URL and print a summary, or save the body with --output."""
    try:
        config = load_app_config(config_path)
    except ConfigError as e:
        err_console.print(f"[red]Error:[/red] {e.message}")
        if e.details:
            err_console.print(e.details)
        raise typer.Exit(1)

    setup_logging_from_config(config.logging)

    response_format: Any = None
    if fmt:
        try:
            response_format = ContentKind(fmt.lower())
        except ValueError:
            response_format = fmt.lower()

    options = RequestOptions(
        cache_enabled=False if no_cache else None,
        timeout_ms=timeout_ms,
        retry_limit=retries,
        response_format=response_format,
    )

    try:
        response = asyncio.run(_fetch(config, url, options))
    except NflFetchError as e:
        err_console.print(f"[red]{e.code.value}:[/red] {e.message}")
        raise typer.Exit(1)

    body = _payload_bytes(response)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(body)
        console.print(f"[green]OK[/green] Wrote {len(body):,} bytes to {output}")
        return

    console.print(_summary_table(response, len(body)))
