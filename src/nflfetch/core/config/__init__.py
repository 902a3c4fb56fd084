"""Configuration loading and validation."""

from .models import (
    AppConfig,
    CacheConfig,
    ClientConfig,
    HttpConfig,
    LoggingConfig,
    RateLimitConfig,
    RetryConfig,
)
from .loader import ConfigError, load_app_config, load_config_from_env

__all__ = [
    # Config models
    "AppConfig",
    "ClientConfig",
    "HttpConfig",
    "RetryConfig",
    "CacheConfig",
    "RateLimitConfig",
    "LoggingConfig",
    # Loaders
    "ConfigError",
    "load_app_config",
    "load_config_from_env",
]
