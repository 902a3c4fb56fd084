"""
Rate limiting and throttling utilities.

Token bucket with lazy refill and a FIFO wait queue. Tokens are never
added by a background tick; every access recomputes them from the time
elapsed since the last refill.
"""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass
from typing import Any

from nflfetch.core.config.models import RateLimitConfig
from nflfetch.core.errors import RateLimiterResetError
from nflfetch.core.logging import get_logger

from .clock import Clock, monotonic_ms

logger = get_logger("fetch.throttling")


@dataclass(eq=False)
class _Waiter:
    """A caller parked in the wait queue."""

    future: asyncio.Future[None]
    timer: asyncio.TimerHandle | None = None

    def cancel_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None


class RateLimiter:
    """Token bucket rate limiter.

    Allows bursts up to ``max_requests``, then refills at
    ``max_requests / interval_ms`` tokens per millisecond.

    Features:
    - Lazy refill, capped at ``max_tokens``
    - FIFO service for callers blocked on an empty bucket
    - Cancelling a waiting ``acquire()`` removes it from the queue

    Usage:
        limiter = RateLimiter(RateLimitConfig(max_requests=10, interval_ms=1000))
        await limiter.acquire()
        # make request
    """

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        *,
        clock: Clock = monotonic_ms,
    ):
        """Initialize rate limiter.

        Args:
            config: Bucket size and refill interval
            clock: Monotonic clock returning milliseconds
        """
        self.config = config or RateLimitConfig()
        self._clock = clock

        self.max_tokens = self.config.max_requests
        self.refill_rate = self.config.refill_rate_per_ms

        # Integer credit: one token is worth interval_ms units and every
        # elapsed millisecond adds max_tokens units.
        self._token_cost = self.config.interval_ms
        self._capacity = self.max_tokens * self._token_cost
        self._credit = self._capacity
        self._last_refill = self._clock()
        self._queue: deque[_Waiter] = deque()

    def _refill(self) -> None:
        """Add credit for the time elapsed since the last refill."""
        now = self._clock()
        elapsed = now - self._last_refill
        if elapsed > 0:
            self._credit = min(self._capacity, self._credit + elapsed * self.max_tokens)
        self._last_refill = now

    def _has_token(self) -> bool:
        return self._credit >= self._token_cost

    def _take_token(self) -> None:
        self._credit -= self._token_cost

    def _try_acquire(self) -> bool:
        self._refill()
        if self._has_token():
            self._take_token()
            return True
        return False

    def _wait_ms(self, position: int = 0) -> int:
        """Milliseconds until the waiter at ``position`` can expect a token."""
        missing = (position + 1) * self._token_cost - self._credit
        if missing <= 0:
            return 0
        return -(-missing // self.max_tokens)

    def _arm(self, waiter: _Waiter, position: int) -> None:
        waiter.cancel_timer()
        delay_ms = self._wait_ms(position)
        loop = waiter.future.get_loop()
        waiter.timer = loop.call_later(delay_ms / 1000.0, self._on_wake, waiter)

    def _on_wake(self, waiter: _Waiter) -> None:
        waiter.timer = None
        self._drain()
        # Lost the race to earlier waiters; re-check later
        if not waiter.future.done() and waiter in self._queue:
            self._arm(waiter, self._queue.index(waiter))

    def _drain(self) -> None:
        """Grant available tokens to waiters from the head of the queue."""
        self._refill()
        while self._queue and self._has_token():
            waiter = self._queue.popleft()
            waiter.cancel_timer()
            if waiter.future.done():
                continue
            self._take_token()
            waiter.future.set_result(None)

    def _discard(self, waiter: _Waiter) -> None:
        """Drop a cancelled waiter, refunding a token granted too late."""
        waiter.cancel_timer()
        if waiter in self._queue:
            self._queue.remove(waiter)
        future = waiter.future
        if future.done() and not future.cancelled() and future.exception() is None:
            self._credit = min(self._capacity, self._credit + self._token_cost)
            self._drain()

    async def acquire(self) -> None:
        """Wait until a token is available, then consume it.

        Returns immediately when the bucket has a token and nobody is
        queued. Otherwise the caller joins the tail of the wait queue.

        Raises:
            asyncio.CancelledError: If the waiting task is cancelled
            RateLimiterResetError: If ``reset()`` runs while waiting
        """
        if not self._queue and self._try_acquire():
            return

        loop = asyncio.get_running_loop()
        waiter = _Waiter(loop.create_future())
        self._queue.append(waiter)
        self._arm(waiter, len(self._queue) - 1)

        logger.debug(
            "Rate limiter empty, queued at position %d (wait ~%d ms)",
            len(self._queue),
            self._wait_ms(len(self._queue) - 1),
        )

        try:
            await waiter.future
        except asyncio.CancelledError:
            self._discard(waiter)
            raise

    def get_available_tokens(self) -> int:
        """Get the current whole-token count (refills first)."""
        self._refill()
        return self._credit // self._token_cost

    def get_time_until_next_token(self) -> int:
        """Milliseconds until a token is available; 0 if one is now."""
        self._refill()
        return self._wait_ms()

    def reset(self) -> None:
        """Restore a full bucket and reject every queued waiter.

        Each waiting ``acquire()`` raises ``RateLimiterResetError``.
        """
        self._credit = self._capacity
        self._last_refill = self._clock()

        waiters = list(self._queue)
        self._queue.clear()
        for waiter in waiters:
            waiter.cancel_timer()
            if not waiter.future.done():
                waiter.future.set_exception(
                    RateLimiterResetError("Rate limiter was reset while waiting for a token")
                )

        if waiters:
            logger.debug("Rate limiter reset, rejected %d waiters", len(waiters))

    @property
    def queue_length(self) -> int:
        return len(self._queue)

    def stats(self) -> dict[str, Any]:
        """Get rate limiter statistics."""
        return {
            "available_tokens": self.get_available_tokens(),
            "max_tokens": self.max_tokens,
            "queue_length": len(self._queue),
        }

    async def __aenter__(self) -> "RateLimiter":
        """Acquire a token for the ``async with`` block.

        Usage:
            async with limiter:
                await make_request(url)
        """
        await self.acquire()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        pass
