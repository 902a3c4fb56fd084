"""
In-memory response cache with TTL expiry and LRU eviction.

Entries expire lazily on read or eagerly through ``evict_expired()``.
When a new key is inserted at capacity, the least recently used entry
is evicted first.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

import orjson

from nflfetch.core.config.models import CacheConfig

from .clock import Clock, monotonic_ms


def _to_json(value: Any) -> str:
    return orjson.dumps(value, default=str, option=orjson.OPT_NON_STR_KEYS).decode("utf-8")


@dataclass(frozen=True)
class CacheEntry:
    """A cached payload. Entries are replaced, never patched."""

    value: Any
    cached_at: int  # ms on the cache clock
    ttl_ms: int
    etag: str = ""
    last_modified: str = ""

    def is_expired(self, now_ms: int) -> bool:
        return now_ms - self.cached_at > self.ttl_ms


class ResponseCache:
    """Bounded key/value store with per-entry TTL and LRU eviction.

    Features:
    - Lazy expiry on ``get``/``has``
    - Eager sweep with ``evict_expired``
    - Least recently used eviction at capacity

    All operations are synchronous and never await, so they are atomic
    with respect to other asyncio tasks sharing the cache.
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        *,
        clock: Clock = monotonic_ms,
    ):
        """Initialize the cache.

        Args:
            config: Cache settings (max size, default TTL)
            clock: Monotonic clock returning milliseconds
        """
        self.config = config or CacheConfig()
        self._clock = clock

        self._entries: dict[str, CacheEntry] = {}
        # key -> access counter; dict order follows recency
        self._access_order: dict[str, int] = {}
        self._access_counter = 0

    @property
    def max_size(self) -> int:
        return self.config.max_size

    @property
    def default_ttl_ms(self) -> int:
        return self.config.ttl_ms

    @property
    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def _now_ms(self) -> int:
        return self._clock()

    def _touch(self, key: str) -> None:
        self._access_counter += 1
        self._access_order.pop(key, None)
        self._access_order[key] = self._access_counter

    def _remove(self, key: str) -> bool:
        self._access_order.pop(key, None)
        return self._entries.pop(key, None) is not None

    def get_entry(self, key: str) -> CacheEntry | None:
        """Return the live entry for ``key``, touching its access order."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        if entry.is_expired(self._now_ms()):
            self._remove(key)
            return None

        self._touch(key)
        return entry

    def get(self, key: str) -> Any | None:
        """Get a cached value if present and unexpired.

        Returns:
            The cached value, or None when absent or expired
        """
        entry = self.get_entry(key)
        return entry.value if entry is not None else None

    def set(
        self,
        key: str,
        value: Any,
        ttl_ms: int | None = None,
        etag: str | None = None,
        last_modified: str | None = None,
    ) -> None:
        """Insert or replace an entry.

        Inserting a new key at capacity evicts the least recently used
        entry first. Overwriting an existing key never evicts another.

        Args:
            key: Cache key
            value: Payload (opaque to the cache)
            ttl_ms: Entry TTL (default: cache-wide TTL); negative values
                expire on the next read
            etag: ETag response header, kept for revalidation
            last_modified: Last-Modified response header
        """
        if key not in self._entries and len(self._entries) >= self.max_size:
            self._evict_oldest()

        self._entries[key] = CacheEntry(
            value=value,
            cached_at=self._now_ms(),
            ttl_ms=self.default_ttl_ms if ttl_ms is None else ttl_ms,
            etag=etag or "",
            last_modified=last_modified or "",
        )
        self._touch(key)

    def has(self, key: str) -> bool:
        """Check if a key is present and unexpired (expires lazily)."""
        return self.get_entry(key) is not None

    def delete(self, key: str) -> bool:
        """Delete an entry. Returns whether it existed."""
        return self._remove(key)

    def clear(self) -> None:
        """Remove all entries and reset the access counter."""
        self._entries.clear()
        self._access_order.clear()
        self._access_counter = 0

    def evict_expired(self) -> int:
        """Remove every expired entry.

        Returns:
            Number of entries removed
        """
        now_ms = self._now_ms()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now_ms)]
        for key in expired:
            self._remove(key)
        return len(expired)

    def _evict_oldest(self) -> None:
        """Evict the entry with the smallest access counter."""
        if not self._access_order:
            return
        oldest_key = next(iter(self._access_order))
        self._remove(oldest_key)

    def stats(self) -> dict[str, Any]:
        """Get cache statistics (no side effects)."""
        return {
            "size": len(self._entries),
            "max_size": self.max_size,
            "keys": list(self._entries.keys()),
        }

    @staticmethod
    def generate_key(url: str, options: Mapping[str, Any] | None = None) -> str:
        """Build a canonical cache key from a URL and request options.

        Option names are sorted and serialized as ``name=<json>`` joined
        with ``&``, so option order never changes the key. Empty options
        yield the URL unchanged.
        """
        if not options:
            return url

        parts = [f"{name}={_to_json(options[name])}" for name in sorted(options)]
        return f"{url}?{'&'.join(parts)}"
