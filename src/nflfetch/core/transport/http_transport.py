"""
HTTP transport implementation using httpx.

Provides async HTTP calls with:
- Persistent connection pooling
- Configurable default headers and user agent
- Per-attempt timeouts
"""

from __future__ import annotations

import time

import httpx

from nflfetch.core.config.models import HttpConfig

from .base import RequestSpec, Transport, TransportResponse


class HttpxTransport(Transport):
    """Transport backed by ``httpx.AsyncClient``.

    Retries are handled by the request client, so the underlying
    connection pool is created without transport-level retries.
    """

    def __init__(
        self,
        config: HttpConfig | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        max_connections: int = 20,
    ):
        """Initialize HTTP transport.

        Args:
            config: Timeout, user agent and default headers
            client: Pre-built client (tests inject one with a MockTransport)
            max_connections: Connection pool size
        """
        self.config = config or HttpConfig()
        self.max_connections = max_connections

        self.default_headers = {
            "User-Agent": self.config.user_agent,
            "Accept": "*/*",
            "Accept-Encoding": "gzip, deflate",
            **self.config.headers,
        }

        self._client = client
        self._owns_client = client is None

    @property
    def name(self) -> str:
        return "httpx"

    def _ensure_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.timeout_ms / 1000.0),
                follow_redirects=self.config.follow_redirects,
                headers=self.default_headers,
                limits=httpx.Limits(
                    max_connections=self.max_connections,
                    max_keepalive_connections=self.max_connections // 2,
                ),
            )
            self._owns_client = True
        return self._client

    async def send(self, request: RequestSpec) -> TransportResponse:
        """Perform one HTTP attempt.

        httpx errors propagate unchanged so the client can classify them.
        """
        client = self._ensure_client()

        timeout_ms = request.timeout_ms or self.config.timeout_ms
        start = time.perf_counter()

        response = await client.request(
            request.method.upper(),
            request.url,
            headers=request.headers or None,
            params=request.params or None,
            json=request.json_data,
            content=request.content,
            timeout=httpx.Timeout(timeout_ms / 1000.0),
            follow_redirects=request.follow_redirects,
        )
        content = await response.aread()

        return TransportResponse(
            url=request.url,
            final_url=str(response.url),
            status_code=response.status_code,
            headers=dict(response.headers),
            content=content,
            elapsed_ms=(time.perf_counter() - start) * 1000,
        )

    async def close(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._client is not None and self._owns_client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
