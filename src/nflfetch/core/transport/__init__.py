"""Transports performing the raw HTTP call."""

from .base import (
    HTTPStatusError,
    RequestSpec,
    Transport,
    TransportError,
    TransportResponse,
)
from .http_transport import HttpxTransport

__all__ = [
    # Base classes
    "Transport",
    "RequestSpec",
    "TransportResponse",
    # Base errors
    "TransportError",
    "HTTPStatusError",
    # httpx transport
    "HttpxTransport",
]
