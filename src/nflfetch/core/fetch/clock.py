"""
Millisecond clock shared by the cache and the rate limiter.

Time is kept as integer milliseconds so TTL and token arithmetic is
exact. Tests substitute any zero-argument callable returning an int.
"""

from __future__ import annotations

import time
from typing import Callable

Clock = Callable[[], int]


def monotonic_ms() -> int:
    """Monotonic time in whole milliseconds."""
    return time.monotonic_ns() // 1_000_000
