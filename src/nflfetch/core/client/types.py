"""
Request client types: per-request options, responses and hooks.
"""

from __future__ import annotations

import asyncio
import dataclasses
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Union

from nflfetch.core.decode import ContentKind


@dataclass
class RequestOptions:
    """Options for a single logical request.

    ``None`` means "use the client configuration".
    """

    method: str = "GET"
    params: dict[str, Any] | None = None
    headers: dict[str, str] | None = None
    json_data: Any = None
    content: bytes | str | None = None

    # Caching
    cache_enabled: bool | None = None
    cache_ttl_ms: int | None = None
    cache_key: str | None = None

    # Transport
    timeout_ms: int | None = None
    retry_limit: int | None = None
    follow_redirects: bool | None = None
    cancel_event: asyncio.Event | None = None

    # Force a payload kind, e.g. "csv" or ContentKind.BINARY
    response_format: ContentKind | str | None = None

    def shaping_options(self) -> dict[str, Any]:
        """Options that change what the server returns, for cache keys."""
        shaping: dict[str, Any] = {}
        if self.method.upper() != "GET":
            shaping["method"] = self.method.upper()
        if self.params:
            shaping["params"] = self.params
        if self.headers:
            shaping["headers"] = self.headers
        if self.json_data is not None:
            shaping["json"] = self.json_data
        if self.content is not None:
            shaping["content"] = self.content
        return shaping

    def replace(self, **changes: Any) -> "RequestOptions":
        return dataclasses.replace(self, **changes)


@dataclass
class HttpResponse:
    """Decoded response with metadata."""

    data: Any
    status: int
    headers: dict[str, str] = field(default_factory=dict)
    from_cache: bool = False
    url: str = ""  # Final URL after redirects
    content_kind: ContentKind | None = None
    attempts: int = 0
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        """Check if request was successful (2xx status)."""
        return 200 <= self.status < 300


HookResult = Union[Awaitable[Any], Any]

BeforeRequestHook = Callable[[str, RequestOptions], HookResult]
AfterResponseHook = Callable[[HttpResponse], HookResult]
ErrorHook = Callable[[Exception, str], HookResult]


@dataclass
class RequestHooks:
    """Optional observers invoked at fixed pipeline points.

    Each slot may be a plain function or a coroutine function.

    - ``before_request(url, options)``: after the rate gate, before the
      first transport attempt
    - ``after_response(response)``: on cache hits and network responses;
      a non-None return value replaces the response
    - ``on_error(error, url)``: once per failed request, with the
      classified error
    """

    before_request: BeforeRequestHook | None = None
    after_response: AfterResponseHook | None = None
    on_error: ErrorHook | None = None
