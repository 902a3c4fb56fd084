"""
Pytest configuration and shared fixtures.

All fixtures avoid real network access: the client runs on a scripted
in-memory transport and time-dependent components run on a fake clock.

Usage:
    async def test_example(make_client, fake_transport):
        client = make_client()
        await client.get("https://x/data")
        assert len(fake_transport.calls) == 1
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable

import pytest

from nflfetch.core.client import RequestClient
from nflfetch.core.config.models import CacheConfig, ClientConfig, RetryConfig
from nflfetch.core.transport.base import RequestSpec, Transport, TransportResponse


# =============================================================================
# CLOCK
# =============================================================================


class FakeClock:
    """Manually advanced monotonic clock (milliseconds)."""

    def __init__(self, start: int = 1_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance_ms(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# =============================================================================
# TRANSPORT
# =============================================================================


def make_response(
    status: int = 200,
    body: bytes = b'{"ok": true}',
    content_type: str | None = "application/json",
    url: str = "https://x/data",
    headers: dict[str, str] | None = None,
) -> TransportResponse:
    """Build a transport response for scripted outcomes."""
    all_headers = dict(headers or {})
    if content_type is not None:
        all_headers["content-type"] = content_type
    return TransportResponse(
        url=url,
        final_url=url,
        status_code=status,
        headers=all_headers,
        content=body,
        elapsed_ms=1.0,
    )


class FakeTransport(Transport):
    """Transport that replays scripted outcomes.

    Each outcome is a TransportResponse to return or an exception to
    raise. When the script runs out, ``default`` is returned.
    """

    def __init__(
        self,
        *outcomes: TransportResponse | BaseException,
        default: TransportResponse | None = None,
        delay: float = 0.0,
    ):
        self.outcomes = list(outcomes)
        self.default = default or make_response()
        self.delay = delay
        self.calls: list[RequestSpec] = []
        self.closed = False

    @property
    def name(self) -> str:
        return "fake"

    def script(self, *outcomes: TransportResponse | BaseException) -> None:
        self.outcomes.extend(outcomes)

    async def send(self, request: RequestSpec) -> TransportResponse:
        self.calls.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        outcome = self.outcomes.pop(0) if self.outcomes else self.default
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


# =============================================================================
# CLIENT
# =============================================================================


@pytest.fixture
def client_config() -> ClientConfig:
    """Client config with zero retry backoff."""
    return ClientConfig(
        retry=RetryConfig(limit=3, backoff_ms=0, max_backoff_ms=0),
        cache=CacheConfig(max_size=100),
    )


@pytest.fixture
def make_client(client_config: ClientConfig, fake_transport: FakeTransport) -> Callable[..., RequestClient]:
    """Factory fixture for clients on the fake transport."""

    def _create(config: ClientConfig | None = None, **kwargs: Any) -> RequestClient:
        kwargs.setdefault("transport", fake_transport)
        return RequestClient(config or client_config, **kwargs)

    return _create
