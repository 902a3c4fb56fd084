"""
Retry utilities with tenacity.

Decides which transport failures are transient and builds the
``AsyncRetrying`` controller the request client drives.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random_exponential,
)

from nflfetch.core.config.models import RetryConfig
from nflfetch.core.logging import get_logger
from nflfetch.core.transport.base import HTTPStatusError, TransportError

logger = get_logger("fetch.retries")

# Network-level failures worth another attempt
TRANSIENT_EXCEPTIONS: tuple[type[BaseException], ...] = (
    httpx.TransportError,
    TimeoutError,
    asyncio.TimeoutError,
    ConnectionError,
)


class RetryPolicy:
    """Which requests and failures are retried, and how long to back off."""

    def __init__(self, config: RetryConfig | None = None):
        self.config = config or RetryConfig()
        self.status_codes = frozenset(self.config.status_codes)
        self.methods = frozenset(self.config.methods)

    def allows_method(self, method: str) -> bool:
        return method.upper() in self.methods

    def is_transient(self, exc: BaseException) -> bool:
        """Check if an attempt failure should be retried.

        Network failures and allow-listed statuses (408, 429, 5xx, ...)
        are transient. Other 4xx responses are not.
        """
        if isinstance(exc, HTTPStatusError):
            return exc.status_code in self.status_codes
        if isinstance(exc, TRANSIENT_EXCEPTIONS):
            return True
        return isinstance(exc, TransportError)

    def _wait_strategy(self) -> Any:
        multiplier = self.config.backoff_ms / 1000.0
        max_wait = self.config.max_backoff_ms / 1000.0
        if self.config.jitter:
            return wait_random_exponential(multiplier=multiplier, max=max_wait)
        return wait_exponential(multiplier=multiplier, max=max_wait)

    def retrying(
        self,
        method: str,
        retry_limit: int | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> AsyncRetrying:
        """Build the retry controller for one request.

        Args:
            method: HTTP method; non-retryable methods get a single attempt
            retry_limit: Retries after the first attempt (default: config)
            sleep: Async sleep used between attempts (default: asyncio.sleep)

        Returns:
            AsyncRetrying that re-raises the last failure
        """
        if retry_limit is None:
            retry_limit = self.config.limit
        attempts = retry_limit + 1 if self.allows_method(method) else 1

        kwargs: dict[str, Any] = {}
        if sleep is not None:
            kwargs["sleep"] = sleep

        return AsyncRetrying(
            stop=stop_after_attempt(max(1, attempts)),
            wait=self._wait_strategy(),
            retry=retry_if_exception(self.is_transient),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
            **kwargs,
        )
