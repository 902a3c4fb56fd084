"""
Unit tests for HttpxTransport.

Uses httpx.MockTransport so no sockets are opened.
"""

import httpx
import orjson
import pytest

from nflfetch.core.client import RequestClient
from nflfetch.core.config.models import ClientConfig, HttpConfig, RetryConfig
from nflfetch.core.errors import DataNotFoundError, NetworkError
from nflfetch.core.transport import HttpxTransport, RequestSpec


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestHttpxTransport:
    """Tests for a single HTTP attempt."""

    @pytest.mark.asyncio
    async def test_send_returns_raw_response(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                content=b"season,week\n2024,1\n",
                headers={"Content-Type": "text/csv", "ETag": '"abc"'},
            )

        transport = HttpxTransport(client=mock_client(handler))

        raw = await transport.send(RequestSpec(url="https://x/data.csv"))

        assert raw.status_code == 200
        assert raw.ok
        assert raw.content == b"season,week\n2024,1\n"
        assert raw.content_type == "text/csv"
        assert raw.header("etag") == '"abc"'
        assert raw.final_url == "https://x/data.csv"

    @pytest.mark.asyncio
    async def test_params_headers_and_json_are_sent(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"created": True})

        transport = HttpxTransport(client=mock_client(handler))

        await transport.send(
            RequestSpec(
                url="https://x/items",
                method="post",
                headers={"X-Trace": "t1"},
                params={"season": 2024},
                json_data={"name": "KC"},
            )
        )

        request = seen[0]
        assert request.method == "POST"
        assert request.url.params["season"] == "2024"
        assert request.headers["x-trace"] == "t1"
        assert orjson.loads(request.content) == {"name": "KC"}

    @pytest.mark.asyncio
    async def test_error_status_is_returned_not_raised(self):
        transport = HttpxTransport(client=mock_client(lambda request: httpx.Response(503)))

        raw = await transport.send(RequestSpec(url="https://x/data"))

        assert raw.status_code == 503
        assert not raw.ok

    @pytest.mark.asyncio
    async def test_connection_errors_propagate(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        transport = HttpxTransport(client=mock_client(handler))

        with pytest.raises(httpx.ConnectError):
            await transport.send(RequestSpec(url="https://x/data"))

    def test_default_headers_include_user_agent(self):
        transport = HttpxTransport(HttpConfig(user_agent="tests/1.0", headers={"X-Api": "k"}))

        assert transport.default_headers["User-Agent"] == "tests/1.0"
        assert transport.default_headers["X-Api"] == "k"

    @pytest.mark.asyncio
    async def test_close_leaves_injected_client_open(self):
        client = mock_client(lambda request: httpx.Response(200))
        transport = HttpxTransport(client=client)

        await transport.close()

        assert not client.is_closed
        await client.aclose()

    @pytest.mark.asyncio
    async def test_close_owned_client(self):
        transport = HttpxTransport()
        client = transport._ensure_client()

        await transport.close()

        assert client.is_closed


class TestClientOverHttpx:
    """End-to-end runs of the request client over httpx."""

    @pytest.mark.asyncio
    async def test_get_decodes_and_caches(self):
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(200, json=[{"team": "KC"}])

        transport = HttpxTransport(client=mock_client(handler))
        async with RequestClient(transport=transport) as client:
            first = await client.get("https://x/teams.json")
            second = await client.get("https://x/teams.json")

        assert first.data == [{"team": "KC"}]
        assert second.from_cache
        assert calls == 1

    @pytest.mark.asyncio
    async def test_connect_error_becomes_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        config = ClientConfig(retry=RetryConfig(limit=1, backoff_ms=0, max_backoff_ms=0))
        transport = HttpxTransport(client=mock_client(handler))
        client = RequestClient(config, transport=transport)

        with pytest.raises(NetworkError) as exc_info:
            await client.get("https://x/data")

        assert isinstance(exc_info.value.cause, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_missing_release_asset(self):
        transport = HttpxTransport(client=mock_client(lambda request: httpx.Response(404)))
        client = RequestClient(transport=transport)

        with pytest.raises(DataNotFoundError):
            await client.get("https://x/pbp_1900.parquet")
