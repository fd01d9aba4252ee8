"""Async HTTP client shared by the archive and classifier adapters."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage
from hishel.httpx import AsyncCacheClient

from exosync.config.http_resilience import CacheConfig, RateLimit, ResilienceConfig

if TYPE_CHECKING:
    from types import TracebackType

__all__ = [
    "CacheConfig",
    "RateLimit",
    "ResilienceConfig",
    "ResilientClient",
    "default_client_factory",
]


class ResilientClient:
    """httpx client for one :class:`ResilienceConfig` profile.

    Applies the profile's rate limit and, when a cache is configured, serves
    repeated GETs from hishel's SQLite store. Requests are sent once; timeouts
    and transport errors surface as the usual ``httpx`` exceptions.
    """

    def __init__(self, config: ResilienceConfig) -> None:
        self.config = config
        limit = config.ratelimit
        self._limiter = AsyncLimiter(limit.max_calls, limit.per_seconds) if limit else None

        options: dict[str, Any] = {"timeout": config.timeout_seconds}
        if config.base_url is not None:
            options["base_url"] = config.base_url
        if config.default_headers:
            options["headers"] = dict(config.default_headers)

        if config.cache is None:
            self._client: httpx.AsyncClient = httpx.AsyncClient(**options)
        else:
            self._client = AsyncCacheClient(**options, storage=_cache_storage(config.cache))

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(self, url: str, *, params: httpx.QueryParams | None = None) -> httpx.Response:
        return await self._send(self._client.build_request("GET", url, params=params))

    async def post(
        self,
        url: str,
        *,
        json: object,
        timeout: float | None = None,
    ) -> httpx.Response:
        request = self._client.build_request(
            "POST",
            url,
            json=json,
            timeout=timeout if timeout is not None else self.config.timeout_seconds,
        )
        return await self._send(request)

    async def _send(self, request: httpx.Request) -> httpx.Response:
        if self._limiter is None:
            return await self._client.send(request)
        async with self._limiter:
            return await self._client.send(request)


def _cache_storage(config: CacheConfig) -> AsyncSqliteStorage:
    return AsyncSqliteStorage(database_path=config.sqlite_path, default_ttl=config.ttl_seconds)


def default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)
