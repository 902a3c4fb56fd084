"""Request client - cache, rate gate, transport, decode, hooks."""

from .client import CACHEABLE_METHODS, RequestClient, create_client
from .types import HttpResponse, RequestHooks, RequestOptions

__all__ = [
    "RequestClient",
    "create_client",
    "RequestOptions",
    "HttpResponse",
    "RequestHooks",
    "CACHEABLE_METHODS",
]
