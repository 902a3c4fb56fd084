"""
Request client orchestrator.

Coordinates one logical request:
cache check → rate gate → transport (retry/timeout) → decode → cache store → hooks.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable, TypeVar
from urllib.parse import urlparse

import httpx

from nflfetch.core.config.models import ClientConfig
from nflfetch.core.decode import ContentKind, Decoders, classify_content_type, kind_for_format
from nflfetch.core.errors import (
    DataNotFoundError,
    InvalidDataError,
    NetworkError,
    NflFetchError,
    RequestCancelledError,
    RequestTimeoutError,
)
from nflfetch.core.fetch.cache import CacheEntry, ResponseCache
from nflfetch.core.fetch.retries import RetryPolicy
from nflfetch.core.fetch.throttling import RateLimiter
from nflfetch.core.logging import ContextualLogger, get_contextual_logger
from nflfetch.core.transport.base import HTTPStatusError, RequestSpec, Transport, TransportResponse
from nflfetch.core.transport.http_transport import HttpxTransport

from .types import HttpResponse, RequestHooks, RequestOptions

T = TypeVar("T")

CACHEABLE_METHODS = frozenset({"GET", "HEAD"})


async def _call_hook(hook: Callable[..., Any] | None, *args: Any) -> Any:
    """Invoke a sync or async hook and return its result."""
    if hook is None:
        return None
    result = hook(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


async def _cancellable(
    aw: Awaitable[T],
    cancel_event: asyncio.Event | None,
    url: str,
) -> T:
    """Await ``aw`` unless ``cancel_event`` is set first.

    Raises:
        RequestCancelledError: If the event fires before ``aw`` completes
    """
    if cancel_event is None:
        return await aw

    if cancel_event.is_set():
        if inspect.iscoroutine(aw):
            aw.close()
        raise RequestCancelledError(f"Request aborted: {url}", {"url": url})

    task = asyncio.ensure_future(aw)
    cancel_wait = asyncio.ensure_future(cancel_event.wait())
    try:
        done, _ = await asyncio.wait({task, cancel_wait}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        cancel_wait.cancel()
        raise

    if task in done:
        cancel_wait.cancel()
        return task.result()

    task.cancel()
    await asyncio.gather(task, return_exceptions=True)
    raise RequestCancelledError(f"Request aborted: {url}", {"url": url})


class RequestClient:
    """HTTP client with caching, throttling, retry and decoding.

    A single instance is meant to be shared by many concurrent requests;
    the cache and the rate limiter are its only shared state.

    Usage:
        async with RequestClient(ClientConfig(rate_limit=RateLimitConfig())) as client:
            response = await client.get("https://example.com/data.csv")
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        transport: Transport | None = None,
        cache: ResponseCache | None = None,
        rate_limiter: RateLimiter | None = None,
        decoders: Decoders | None = None,
        hooks: RequestHooks | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Client configuration (defaults apply when omitted)
            transport: Low-level HTTP transport (default: HttpxTransport)
            cache: Response cache (default: built from config.cache)
            rate_limiter: Rate limiter (default: built from config.rate_limit,
                none when that is unset)
            decoders: Payload decoders per content kind
            hooks: Lifecycle hooks
            sleep: Async sleep used for retry backoff
        """
        self.config = config or ClientConfig()
        self.transport = transport if transport is not None else HttpxTransport(self.config.http)
        self.cache = cache if cache is not None else ResponseCache(self.config.cache)
        if rate_limiter is None and self.config.rate_limit is not None:
            rate_limiter = RateLimiter(self.config.rate_limit)
        self.rate_limiter = rate_limiter
        self.decoders = decoders or Decoders()
        self.retry_policy = RetryPolicy(self.config.retry)
        self.hooks = hooks or RequestHooks()
        self._sleep = sleep or asyncio.sleep

    def set_hooks(self, hooks: RequestHooks) -> None:
        """Replace the lifecycle hooks."""
        self.hooks = hooks

    # =========================================================================
    # Verb wrappers
    # =========================================================================

    async def get(self, url: str, options: RequestOptions | None = None) -> HttpResponse:
        return await self.request(url, (options or RequestOptions()).replace(method="GET"))

    async def post(
        self,
        url: str,
        json_data: Any = None,
        options: RequestOptions | None = None,
    ) -> HttpResponse:
        return await self.request(
            url, (options or RequestOptions()).replace(method="POST", json_data=json_data)
        )

    async def put(
        self,
        url: str,
        json_data: Any = None,
        options: RequestOptions | None = None,
    ) -> HttpResponse:
        return await self.request(
            url, (options or RequestOptions()).replace(method="PUT", json_data=json_data)
        )

    async def delete(self, url: str, options: RequestOptions | None = None) -> HttpResponse:
        return await self.request(url, (options or RequestOptions()).replace(method="DELETE"))

    async def head(self, url: str, options: RequestOptions | None = None) -> HttpResponse:
        return await self.request(url, (options or RequestOptions()).replace(method="HEAD"))

    # =========================================================================
    # Pipeline
    # =========================================================================

    def _resolve_url(self, url: str) -> str:
        base_url = self.config.http.base_url
        if base_url and not urlparse(url).scheme:
            return f"{base_url.rstrip('/')}/{url.lstrip('/')}"
        return url

    async def request(self, url: str, options: RequestOptions | None = None) -> HttpResponse:
        """Perform one logical request.

        Args:
            url: Absolute URL, or a path joined onto ``http.base_url``
            options: Per-request options

        Returns:
            HttpResponse, from the cache or the network

        Raises:
            NetworkError: Transport failure or unsuccessful status
            DataNotFoundError: The server answered 404
            RequestTimeoutError: The transport phase exceeded its timeout
            RequestCancelledError: ``options.cancel_event`` was set
            InvalidDataError: The payload could not be decoded
        """
        options = options or RequestOptions()
        url = self._resolve_url(url)
        method = options.method.upper()

        cache_enabled = (
            self.config.cache.enabled if options.cache_enabled is None else options.cache_enabled
        )
        should_cache = cache_enabled and method in CACHEABLE_METHODS
        cache_key = options.cache_key or ResponseCache.generate_key(url, options.shaping_options())

        log = get_contextual_logger(
            "client",
            url=url,
            method=method,
            cache_key=cache_key if should_cache else None,
        )

        if should_cache:
            entry = self.cache.get_entry(cache_key)
            if entry is not None:
                log.debug("Cache hit")
                return await self._after_response(self._cached_response(entry, url))

        timeout_ms = (
            self.config.http.timeout_ms if options.timeout_ms is None else options.timeout_ms
        )

        try:
            if self.rate_limiter is not None:
                await _cancellable(self.rate_limiter.acquire(), options.cancel_event, url)
                log.debug(
                    "Rate limiter: %d/%d tokens available",
                    self.rate_limiter.get_available_tokens(),
                    self.rate_limiter.max_tokens,
                )

            await _call_hook(self.hooks.before_request, url, options)

            if self.config.debug:
                log.info("Request: %s %s", method, url)

            spec = RequestSpec(
                url=url,
                method=method,
                headers=dict(options.headers or {}),
                params=dict(options.params or {}),
                json_data=options.json_data,
                content=options.content,
                timeout_ms=timeout_ms,
                follow_redirects=(
                    self.config.http.follow_redirects
                    if options.follow_redirects is None
                    else options.follow_redirects
                ),
            )
            raw, attempts = await self._send(spec, options, timeout_ms, log)

            kind, data = self._decode(raw, method, options, url)

            if should_cache and raw.ok:
                self.cache.set(
                    cache_key,
                    data,
                    ttl_ms=options.cache_ttl_ms,
                    etag=raw.header("etag"),
                    last_modified=raw.header("last-modified"),
                )

            if self.config.debug:
                log.bind(status=raw.status_code, elapsed_ms=round(raw.elapsed_ms)).info(
                    "Response: %d %s (%.0f ms)", raw.status_code, url, raw.elapsed_ms
                )

            response = HttpResponse(
                data=data,
                status=raw.status_code,
                headers=dict(raw.headers),
                from_cache=False,
                url=raw.final_url,
                content_kind=kind,
                attempts=attempts,
                elapsed_ms=raw.elapsed_ms,
            )
            return await self._after_response(response)

        except asyncio.CancelledError:
            raise
        except Exception as exc:
            error = self._translate_error(exc, url, timeout_ms)
            log.warning("Request failed: %s", error.message)
            await _call_hook(self.hooks.on_error, error, url)
            if error is exc:
                raise
            raise error from exc

    async def _send(
        self,
        spec: RequestSpec,
        options: RequestOptions,
        timeout_ms: int,
        log: ContextualLogger,
    ) -> tuple[TransportResponse, int]:
        """Run the transport phase: attempts, backoff and the overall timeout."""
        cancel_event = options.cancel_event

        async def backoff(seconds: float) -> None:
            await _cancellable(self._sleep(seconds), cancel_event, spec.url)

        retrying = self.retry_policy.retrying(
            spec.method,
            retry_limit=options.retry_limit,
            sleep=backoff,
        )

        async def attempts() -> tuple[TransportResponse, int]:
            async for attempt in retrying:
                with attempt:
                    number = attempt.retry_state.attempt_number
                    if number > 1:
                        log.bind(attempt=number).debug("Retry attempt %d", number)
                    raw = await _cancellable(self.transport.send(spec), cancel_event, spec.url)
                    raw.raise_for_status()
                    return raw, number
            raise AssertionError("retry loop exited without an outcome")

        return await asyncio.wait_for(attempts(), timeout_ms / 1000.0)

    def _decode(
        self,
        raw: TransportResponse,
        method: str,
        options: RequestOptions,
        url: str,
    ) -> tuple[ContentKind, Any]:
        if options.response_format is not None:
            kind = kind_for_format(options.response_format)
        else:
            kind = classify_content_type(raw.content_type)

        if method == "HEAD":
            return kind, None

        try:
            return kind, self.decoders.decode(kind, raw.content, raw.content_type)
        except Exception as exc:
            raise InvalidDataError(
                f"Failed to decode {kind.value} response from {url}: {exc}",
                {"url": url, "content_kind": kind.value, "content_type": raw.content_type},
                cause=exc,
            ) from exc

    def _translate_error(self, exc: Exception, url: str, timeout_ms: int) -> NflFetchError:
        """Classify a pipeline failure, keeping the original as the cause."""
        if isinstance(exc, NflFetchError):
            return exc

        if isinstance(exc, (TimeoutError, asyncio.TimeoutError, httpx.TimeoutException)):
            return RequestTimeoutError(
                f"Request timeout: {url}",
                {"url": url, "timeout_ms": timeout_ms},
                cause=exc,
            )

        if isinstance(exc, HTTPStatusError):
            context = {"url": url, "status_code": exc.status_code}
            if exc.status_code == 404:
                return DataNotFoundError(f"Data not found: {url}", context, cause=exc)
            return NetworkError(
                f"Network request failed: HTTP {exc.status_code} for {url}",
                context,
                cause=exc,
            )

        return NetworkError(f"Network request failed: {exc}", {"url": url}, cause=exc)

    def _cached_response(self, entry: CacheEntry, url: str) -> HttpResponse:
        headers: dict[str, str] = {}
        if entry.etag:
            headers["etag"] = entry.etag
        if entry.last_modified:
            headers["last-modified"] = entry.last_modified
        return HttpResponse(
            data=entry.value,
            status=200,
            headers=headers,
            from_cache=True,
            url=url,
        )

    async def _after_response(self, response: HttpResponse) -> HttpResponse:
        replaced = await _call_hook(self.hooks.after_response, response)
        return replaced if replaced is not None else response

    # =========================================================================
    # Maintenance
    # =========================================================================

    def clear_cache(self) -> None:
        """Clear the response cache."""
        self.cache.clear()

    def get_cache_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        return self.cache.stats()

    def evict_expired_cache(self) -> int:
        """Evict expired cache entries; returns how many were removed."""
        return self.cache.evict_expired()

    def get_rate_limiter_stats(self) -> dict[str, Any] | None:
        """Get rate limiter statistics, or None without a limiter."""
        if self.rate_limiter is None:
            return None
        return self.rate_limiter.stats()

    def reset_rate_limiter(self) -> None:
        """Reset the rate limiter, if any."""
        if self.rate_limiter is not None:
            self.rate_limiter.reset()

    async def close(self) -> None:
        """Close the underlying transport."""
        await self.transport.close()

    async def __aenter__(self) -> "RequestClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


def create_client(config: ClientConfig | None = None, **kwargs: Any) -> RequestClient:
    """Create a new request client."""
    return RequestClient(config, **kwargs)
