"""
Pydantic configuration models for nflfetch.

These models provide type-safe configuration with validation for:
- HTTP transport settings
- Retry behavior
- Response caching
- Rate limiting
- Logging
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from nflfetch import __version__


DEFAULT_USER_AGENT = f"nflfetch/{__version__}"

# Defaults shared with the core components
DEFAULT_TIMEOUT_MS = 30_000
DEFAULT_RETRY_LIMIT = 3
DEFAULT_CACHE_TTL_MS = 3_600_000
DEFAULT_CACHE_MAX_SIZE = 1000

RETRY_STATUS_CODES = [408, 413, 429, 500, 502, 503, 504]
RETRY_METHODS = ["GET", "HEAD", "OPTIONS", "TRACE"]


# =============================================================================
# HTTP Configuration
# =============================================================================


class HttpConfig(BaseModel):
    """Transport-level settings."""

    base_url: str | None = Field(
        default=None,
        description="Prefix joined onto relative request URLs",
    )
    timeout_ms: int = Field(
        default=DEFAULT_TIMEOUT_MS,
        gt=0,
        description="Bound on the transport phase of a request, in milliseconds",
    )
    user_agent: str = Field(default=DEFAULT_USER_AGENT)
    headers: dict[str, str] = Field(default_factory=dict)
    follow_redirects: bool = True


# =============================================================================
# Retry Configuration
# =============================================================================


class RetryConfig(BaseModel):
    """Retry behavior for transient transport failures."""

    limit: int = Field(
        default=DEFAULT_RETRY_LIMIT,
        ge=0,
        le=20,
        description="Retries after the first attempt",
    )
    backoff_ms: int = Field(
        default=300,
        ge=0,
        description="Initial backoff; doubles on every retry",
    )
    max_backoff_ms: int = Field(default=3000, ge=0)
    jitter: bool = False
    status_codes: list[int] = Field(default_factory=lambda: list(RETRY_STATUS_CODES))
    methods: list[str] = Field(default_factory=lambda: list(RETRY_METHODS))

    @field_validator("methods")
    @classmethod
    def normalize_methods(cls, v: list[str]) -> list[str]:
        return [m.upper() for m in v]


# =============================================================================
# Cache Configuration
# =============================================================================


class CacheConfig(BaseModel):
    """In-memory response cache settings."""

    enabled: bool = True
    ttl_ms: int = Field(
        default=DEFAULT_CACHE_TTL_MS,
        description="Default entry time-to-live in milliseconds",
    )
    max_size: int = Field(
        default=DEFAULT_CACHE_MAX_SIZE,
        ge=1,
        description="Maximum number of live entries",
    )


# =============================================================================
# Rate Limit Configuration
# =============================================================================


class RateLimitConfig(BaseModel):
    """Token bucket settings: ``max_requests`` per ``interval_ms``."""

    max_requests: int = Field(default=100, ge=1)
    interval_ms: int = Field(default=60_000, gt=0)

    @property
    def refill_rate_per_ms(self) -> float:
        return self.max_requests / self.interval_ms


# =============================================================================
# Client Configuration
# =============================================================================


class ClientConfig(BaseModel):
    """Everything a ``RequestClient`` needs."""

    http: HttpConfig = Field(default_factory=HttpConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    rate_limit: RateLimitConfig | None = Field(
        default=None,
        description="Token bucket; no throttling when absent",
    )
    debug: bool = Field(
        default=False,
        description="Log every request and response at INFO",
    )


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    debug: bool = False
    log_file: Path | None = None
    json_format: bool = True
    rich_console: bool = True

    @field_validator("level", mode="before")
    @classmethod
    def upper_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


# =============================================================================
# Application Configuration
# =============================================================================


class AppConfig(BaseModel):
    """Top-level application configuration."""

    client: ClientConfig = Field(default_factory=ClientConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
