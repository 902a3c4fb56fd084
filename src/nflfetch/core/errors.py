"""
Error taxonomy for nflfetch.

Every failure surfaced by the request pipeline is one of these types.
The underlying transport error is preserved as ``cause`` and chained
with ``raise ... from``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Classified failure kinds."""

    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    CANCELLED = "CANCELLED"
    RATE_LIMIT = "RATE_LIMIT"
    DATA_NOT_FOUND = "DATA_NOT_FOUND"
    INVALID_DATA = "INVALID_DATA"
    CONFIG_ERROR = "CONFIG_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class NflFetchError(Exception):
    """Base exception for nflfetch errors."""

    code: ErrorCode = ErrorCode.UNKNOWN_ERROR
    retryable: bool = False

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.cause = cause

    @property
    def url(self) -> str | None:
        return self.context.get("url")

    def to_dict(self) -> dict[str, Any]:
        """Serializable representation for logs and CLI output."""
        data: dict[str, Any] = {
            "name": type(self).__name__,
            "message": self.message,
            "code": self.code.value,
            "context": self.context,
        }
        if self.cause is not None:
            data["cause"] = repr(self.cause)
        return data


class NetworkError(NflFetchError):
    """Transport failure not otherwise classified (DNS, reset, bad status)."""

    code = ErrorCode.NETWORK_ERROR
    retryable = True

    @property
    def status_code(self) -> int | None:
        return self.context.get("status_code")


class DataNotFoundError(NetworkError):
    """The server answered 404 for the requested file."""

    code = ErrorCode.DATA_NOT_FOUND
    retryable = False


class RequestTimeoutError(NflFetchError):
    """The transport phase exceeded its timeout."""

    code = ErrorCode.TIMEOUT
    retryable = True

    @property
    def timeout_ms(self) -> int | None:
        return self.context.get("timeout_ms")


class RequestCancelledError(NflFetchError):
    """The request was aborted through its cancel event."""

    code = ErrorCode.CANCELLED


class RateLimiterResetError(RequestCancelledError):
    """A queued rate limiter waiter was dropped by ``RateLimiter.reset()``."""


class RateLimitError(NflFetchError):
    """Server-side throttling.

    Reserved: 429 responses are retried and surface as ``NetworkError``
    once retries run out.
    """

    code = ErrorCode.RATE_LIMIT
    retryable = True

    def __init__(
        self,
        message: str,
        retry_after: float | None = None,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message, context, cause)
        self.retry_after = retry_after


class InvalidDataError(NflFetchError):
    """The payload could not be decoded."""

    code = ErrorCode.INVALID_DATA
