"""
Configuration loader for YAML files and environment variables.

Loads and validates configuration into Pydantic models. Precedence is
defaults < YAML file < ``NFLFETCH_*`` environment variables.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from nflfetch.core.errors import ErrorCode, NflFetchError

from .models import AppConfig


DEFAULT_CONFIG_PATH = Path("nflfetch.yaml")

ENV_PREFIX = "NFLFETCH_"

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


class ConfigError(NflFetchError):
    """Configuration loading or validation error."""

    code = ErrorCode.CONFIG_ERROR

    def __init__(self, message: str, path: Path | None = None, details: str | None = None):
        super().__init__(message, context={"path": str(path) if path else None, "details": details})
        self.path = path
        self.details = details


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file and return its contents as a dictionary.

    Raises:
        ConfigError: If file cannot be read or parsed
    """
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}", path=path)

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML in {path}",
            path=path,
            details=str(e),
        ) from e
    except OSError as e:
        raise ConfigError(
            f"Cannot read {path}",
            path=path,
            details=str(e),
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Top level of {path} must be a mapping", path=path)
    return data


def _expand_env_vars(data: Any, environ: Mapping[str, str]) -> Any:
    """Recursively expand ``${VAR}`` and ``${VAR:-default}`` in string values."""
    if isinstance(data, str):
        def replacer(match: re.Match[str]) -> str:
            return environ.get(match.group(1), match.group(2) or "")

        return _ENV_VAR_PATTERN.sub(replacer, data)
    if isinstance(data, dict):
        return {k: _expand_env_vars(v, environ) for k, v in data.items()}
    if isinstance(data, list):
        return [_expand_env_vars(item, environ) for item in data]
    return data


def _parse_bool(value: str | None) -> bool | None:
    if value is None:
        return None
    lower = value.strip().lower()
    if lower in ("true", "1", "yes"):
        return True
    if lower in ("false", "0", "no"):
        return False
    return None


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(float(value))
    except (ValueError, OverflowError):
        return None


# (env suffix, section path, parser)
_ENV_OVERRIDES: list[tuple[str, tuple[str, ...], Any]] = [
    ("HTTP_TIMEOUT", ("client", "http", "timeout_ms"), _parse_int),
    ("HTTP_RETRIES", ("client", "retry", "limit"), _parse_int),
    ("HTTP_USER_AGENT", ("client", "http", "user_agent"), lambda v: v),
    ("HTTP_BASE_URL", ("client", "http", "base_url"), lambda v: v),
    ("CACHE_ENABLED", ("client", "cache", "enabled"), _parse_bool),
    ("CACHE_TTL", ("client", "cache", "ttl_ms"), _parse_int),
    ("CACHE_MAX_SIZE", ("client", "cache", "max_size"), _parse_int),
    ("RATE_LIMIT_MAX_REQUESTS", ("client", "rate_limit", "max_requests"), _parse_int),
    ("RATE_LIMIT_INTERVAL", ("client", "rate_limit", "interval_ms"), _parse_int),
    ("LOGGING_LEVEL", ("logging", "level"), lambda v: v.upper()),
    ("LOGGING_DEBUG", ("logging", "debug"), _parse_bool),
]


def load_config_from_env(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Collect ``NFLFETCH_<SECTION>_<KEY>`` overrides as a nested dict.

    Unparseable values are ignored.
    """
    if environ is None:
        environ = os.environ

    overrides: dict[str, Any] = {}
    for suffix, path, parse in _ENV_OVERRIDES:
        raw = environ.get(ENV_PREFIX + suffix)
        if raw is None:
            continue
        value = parse(raw)
        if value is None:
            continue

        node = overrides
        for part in path[:-1]:
            node = node.setdefault(part, {})
        node[path[-1]] = value

    return overrides


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    result = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_app_config(
    path: Path | str | None = None,
    expand_env: bool = True,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    """Load application configuration.

    Args:
        path: Path to a YAML file (default: ./nflfetch.yaml if it exists)
        expand_env: Whether to expand ${VAR} references and apply
            NFLFETCH_* overrides
        environ: Environment mapping (default: os.environ)

    Returns:
        Validated AppConfig instance

    Raises:
        ConfigError: If configuration is invalid
    """
    if environ is None:
        environ = os.environ

    if path is None:
        path = DEFAULT_CONFIG_PATH
        data = _load_yaml_file(path) if path.exists() else {}
    else:
        path = Path(path)
        data = _load_yaml_file(path)

    if expand_env:
        data = _expand_env_vars(data, environ)
        data = _deep_merge(data, load_config_from_env(environ))

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid configuration in {path}",
            path=path,
            details=str(e),
        ) from e
