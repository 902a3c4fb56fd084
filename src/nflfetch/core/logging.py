"""
Logging infrastructure for nflfetch.

Provides:
- Structured JSON logging for file output
- Rich console output for terminal
- Request-scoped context (url, method, cache key, attempt, status)
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

import orjson

if TYPE_CHECKING:
    from rich.console import Console

    from nflfetch.core.config.models import LoggingConfig


ROOT_LOGGER_NAME = "nflfetch"

# Record attributes that ContextualLogger may attach
CONTEXT_FIELDS = ("url", "method", "cache_key", "attempt", "status", "elapsed_ms")

LEVEL_STYLES = {
    logging.DEBUG: "dim",
    logging.INFO: "default",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "bold red",
}

PLAIN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _context_of(record: logging.LogRecord) -> dict[str, Any]:
    return {key: getattr(record, key) for key in CONTEXT_FIELDS if hasattr(record, key)}


# =============================================================================
# Formatters and Handlers
# =============================================================================


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with request context flattened in."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context_of(record),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return orjson.dumps(log_data, default=str).decode("utf-8")


class RichConsoleHandler(logging.Handler):
    """Colored console output, prefixed with the request line when known."""

    def __init__(self, console: "Console | None" = None, level: int = logging.NOTSET):
        super().__init__(level)
        if console is None:
            from rich.console import Console

            console = Console(stderr=True)
        self.console = console

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            style = LEVEL_STYLES.get(record.levelno, "default")

            context = _context_of(record)
            prefix = ""
            request_line = " ".join(str(context[key]) for key in ("method", "url") if key in context)
            if request_line:
                prefix = f"[cyan]{request_line}[/cyan] "
            if "attempt" in context:
                prefix += f"[magenta]#{context['attempt']}[/magenta] "

            self.console.print(f"{prefix}[{style}]{message}[/{style}]", markup=True, highlight=False)

            if record.exc_info:
                self.console.print_exception()
        except Exception:
            self.handleError(record)


# =============================================================================
# Logger Configuration
# =============================================================================


def _console_handler(rich_console: bool) -> logging.Handler:
    if rich_console:
        handler: logging.Handler = RichConsoleHandler()
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
    return handler


def _file_handler(log_file: Path | str, json_format: bool) -> logging.Handler:
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(
    level: str = "WARNING",
    log_file: Path | str | None = None,
    json_format: bool = True,
    rich_console: bool = True,
) -> logging.Logger:
    """Configure the ``nflfetch`` logger tree.

    Replaces any handlers installed by an earlier call. The console gets
    records at ``level`` and above; the optional log file gets
    everything the logger lets through.

    Returns:
        The ``nflfetch`` root logger
    """
    numeric_level = getattr(logging, level.upper())

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    console = _console_handler(rich_console)
    console.setLevel(numeric_level)
    logger.addHandler(console)

    if log_file:
        logger.addHandler(_file_handler(log_file, json_format))

    return logger


def setup_logging_from_config(config: LoggingConfig) -> logging.Logger:
    """Apply a ``LoggingConfig`` section."""
    return setup_logging(
        level="DEBUG" if config.debug else config.level,
        log_file=config.log_file,
        json_format=config.json_format,
        rich_console=config.rich_console,
    )


def get_logger(name: str | None = None) -> logging.Logger:
    """Get ``nflfetch`` or ``nflfetch.<name>``."""
    if name:
        return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
    return logging.getLogger(ROOT_LOGGER_NAME)


# =============================================================================
# Contextual Logging Adapter
# =============================================================================


class ContextualLogger(logging.LoggerAdapter):
    """Logger adapter carrying request context into every record.

    Context values that are None are left off the record.
    """

    def __init__(self, logger: logging.Logger, **context: Any):
        super().__init__(logger, {k: v for k, v in context.items() if v is not None})

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs

    def bind(self, **context: Any) -> "ContextualLogger":
        """Return a logger with extra context layered over this one."""
        return ContextualLogger(self.logger, **{**self.extra, **context})


def get_contextual_logger(name: str | None = None, **context: Any) -> ContextualLogger:
    """Get a contextual logger, e.g. ``get_contextual_logger("client", url=url)``."""
    return ContextualLogger(get_logger(name), **context)
