"""
Transport base classes and data structures.

Defines the contract for the low-level HTTP call the request client
sits on top of. Transports raise their native errors; classification
happens in the client.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class RequestSpec:
    """Specification for a single HTTP attempt."""

    url: str
    method: str = "GET"
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, Any] = field(default_factory=dict)
    json_data: Any = None
    content: bytes | str | None = None
    timeout_ms: int | None = None
    follow_redirects: bool = True


@dataclass
class TransportResponse:
    """Raw result of one HTTP attempt."""

    url: str
    final_url: str  # After redirects
    status_code: int
    headers: dict[str, str]
    content: bytes
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        """Check if request was successful (2xx status)."""
        return 200 <= self.status_code < 300

    @property
    def content_type(self) -> str:
        for name, value in self.headers.items():
            if name.lower() == "content-type":
                return value
        return ""

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    def raise_for_status(self) -> None:
        if not self.ok:
            raise HTTPStatusError(
                f"HTTP {self.status_code} for {self.final_url}",
                status_code=self.status_code,
                response=self,
            )


class Transport(ABC):
    """Abstract base class for transports."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Transport identifier."""
        pass

    @abstractmethod
    async def send(self, request: RequestSpec) -> TransportResponse:
        """Perform one HTTP attempt.

        Args:
            request: Request specification

        Returns:
            TransportResponse for any status code

        Raises:
            Exception: Native transport errors (connection, timeout)
        """
        pass

    async def close(self) -> None:
        """Clean up transport resources."""
        pass

    async def __aenter__(self) -> "Transport":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


class TransportError(Exception):
    """Generic transport-level failure for transports without their own."""


class HTTPStatusError(TransportError):
    """Non-2xx response."""

    def __init__(
        self,
        message: str,
        status_code: int,
        response: TransportResponse | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response = response
