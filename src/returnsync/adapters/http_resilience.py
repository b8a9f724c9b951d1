"""Rate limited, retrying HTTP client shared by the channel adapters.

Transport failures surface as ``ChannelError`` so the reconciliation engine
can treat a flaky marketplace the same way it treats a vendor error body.
"""

from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage, FilterPolicy
from hishel import Response as CachedResponse
from hishel._policies import BaseFilter
from hishel.httpx import AsyncCacheClient
from httpx_retries import Retry, RetryTransport

from returnsync.config.storage import get_http_cache_path
from returnsync.domain.ports import ChannelError, ListingNotFoundError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from types import TracebackType

    from returnsync.config.http_resilience import (
        CacheConfig,
        PayloadPredicate,
        ResilienceConfig,
        RetryPolicy,
    )

log = getLogger(__name__)

# Smartstore answers a deleted product with a 400 and one of these in the body.
NOT_FOUND_MARKERS = ("not found", "존재하지")
ERROR_BODY_LIMIT = 500


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        backoff_jitter=policy.backoff_jitter,
        max_backoff_wait=policy.max_backoff_wait,
        respect_retry_after_header=policy.respect_retry_after_header,
        allowed_methods=sorted(policy.allowed_methods),
        status_forcelist=sorted(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
    )


class ResilientClient:
    """One channel's HTTP session.

    Requests pass through the channel's rate limiter, then the retry transport,
    and optionally a hishel response cache for read-heavy endpoints.
    """

    def __init__(self, config: ResilienceConfig) -> None:
        self.config = config
        self.name = config.name
        self._limiter = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit is not None
            else None
        )
        self._client = self._open(config)

    @staticmethod
    def _open(config: ResilienceConfig) -> httpx.AsyncClient:
        transport = RetryTransport(retry=build_retry(config.retry))
        base_url = config.base_url or ""
        headers = dict(config.headers)
        storage = _cache_storage(config.cache)
        if storage is None:
            return httpx.AsyncClient(
                base_url=base_url,
                headers=headers,
                timeout=config.timeout_seconds,
                transport=transport,
            )
        predicate = config.cache.should_cache if config.cache is not None else None
        return AsyncCacheClient(
            base_url=base_url,
            headers=headers,
            timeout=config.timeout_seconds,
            transport=transport,
            storage=storage,
            policy=_payload_policy(predicate),
        )

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

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str | int] | None = None,
        headers: Mapping[str, str] | None = None,
        json: object = None,
        data: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        try:
            if self._limiter is None:
                response = await self._client.request(
                    method, path, params=params, headers=headers, json=json, data=data
                )
            else:
                async with self._limiter:
                    response = await self._client.request(
                        method, path, params=params, headers=headers, json=json, data=data
                    )
        except httpx.HTTPError as exc:
            log.warning("%s: %s %s failed: %s", self.name, method, path, exc)
            raise ChannelError(f"{self.name}: {method} {path} failed: {exc}", channel=self.name) from exc
        log.debug("%s: %s %s -> %s", self.name, method, path, response.status_code)
        return response

    async def get(
        self,
        path: str,
        *,
        params: Mapping[str, str | int] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        return await self.request("GET", path, params=params, headers=headers)

    async def post(
        self,
        path: str,
        *,
        headers: Mapping[str, str] | None = None,
        json: object = None,
        data: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        return await self.request("POST", path, headers=headers, json=json, data=data)

    async def put(
        self,
        path: str,
        *,
        headers: Mapping[str, str] | None = None,
        json: object = None,
    ) -> httpx.Response:
        return await self.request("PUT", path, headers=headers, json=json)


def raise_for_channel_status(
    response: httpx.Response,
    *,
    channel: str,
    not_found_statuses: Iterable[int] = (404,),
) -> None:
    """Turn an unsuccessful response into the channel error family.

    Vendors report deleted listings either with a 404 or with a message in the
    error body, so both count as ``ListingNotFoundError``.
    """

    if response.is_success:
        return
    body = response.text[:ERROR_BODY_LIMIT]
    request = response.request
    message = f"{channel}: {request.method} {request.url.path} returned {response.status_code}: {body}"
    lowered = body.lower()
    if response.status_code in set(not_found_statuses) or any(marker in lowered for marker in NOT_FOUND_MARKERS):
        raise ListingNotFoundError(message, channel=channel, status_code=response.status_code)
    raise ChannelError(message, channel=channel, status_code=response.status_code)


class _PayloadFilter(BaseFilter[CachedResponse]):
    """Keeps a response out of the cache when the JSON predicate rejects it."""

    def __init__(self, predicate: PayloadPredicate) -> None:
        self._predicate = predicate

    def needs_body(self) -> bool:
        return True

    def apply(self, item: CachedResponse, body: bytes | None) -> bool:  # noqa: ARG002
        if body is None:
            return True
        try:
            payload = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return True
        return bool(self._predicate(payload))


def _payload_policy(predicate: PayloadPredicate | None) -> FilterPolicy | None:
    if predicate is None:
        return None
    return FilterPolicy(response_filters=[_PayloadFilter(predicate)])


def _cache_storage(config: CacheConfig | None) -> AsyncSqliteStorage | None:
    if config is None:
        return None
    if config.backend == "memory":
        database_path = ":memory:"
    elif config.backend == "sqlite":
        database_path = str(config.sqlite_path or get_http_cache_path())
    else:
        msg = f"Unsupported cache backend: {config.backend}"
        raise ValueError(msg)
    return AsyncSqliteStorage(database_path=database_path, default_ttl=config.ttl_seconds)
