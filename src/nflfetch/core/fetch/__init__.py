"""Fetch utilities - caching, throttling, retries."""

from .cache import CacheEntry, ResponseCache
from .retries import RetryPolicy
from .throttling import RateLimiter

__all__ = [
    "CacheEntry",
    "ResponseCache",
    "RateLimiter",
    "RetryPolicy",
]
