"""CLI subcommands."""

from . import config, fetch

__all__ = ["config", "fetch"]
