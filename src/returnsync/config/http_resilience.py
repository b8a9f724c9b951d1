"""Settings for the HTTP clients that talk to marketplaces and webhooks.

Each channel gets its own ``ResilienceConfig`` so that rate limits and retry
budgets follow the quota that vendor publishes.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Literal

import httpx

type CacheBackend = Literal["sqlite", "memory"]
type PayloadPredicate = Callable[[object], bool]

IDEMPOTENT_METHODS: frozenset[str] = frozenset({"DELETE", "GET", "HEAD", "OPTIONS", "PUT"})
TRANSIENT_STATUSES: frozenset[int] = frozenset({429, 500, 502, 503, 504})
TRANSIENT_ERRORS: tuple[type[httpx.HTTPError], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
)


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Retry budget for one channel.

    POST is left out of ``allowed_methods`` by default: order and listing
    creation calls must never be replayed. Read-only POST endpoints opt in
    through ``allowing``.
    """

    total: int = 4
    backoff_factor: float = 1.0
    backoff_jitter: float = 1.0
    max_backoff_wait: float = 60.0
    respect_retry_after_header: bool = True
    allowed_methods: frozenset[str] = IDEMPOTENT_METHODS
    status_forcelist: frozenset[int] = TRANSIENT_STATUSES
    retry_on_exceptions: tuple[type[httpx.HTTPError], ...] = TRANSIENT_ERRORS

    def allowing(self, *methods: str) -> RetryPolicy:
        return replace(self, allowed_methods=self.allowed_methods | {m.upper() for m in methods})


@dataclass(slots=True, frozen=True)
class RateLimit:
    """At most ``max_calls`` requests in any ``per_seconds`` window."""

    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class CacheConfig:
    backend: CacheBackend = "memory"
    sqlite_path: Path | None = None
    ttl_seconds: float | None = None
    # Called with the decoded JSON body; False keeps the response out of the cache.
    should_cache: PayloadPredicate | None = None


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    cache: CacheConfig | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
