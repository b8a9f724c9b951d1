"""Naver Commerce (Smartstore) configuration values."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from .env import require_env_vars
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy

SMARTSTORE_BASE_URL = "https://api.commerce.naver.com/external"
SMARTSTORE_TIMEOUT_SECONDS = 20.0
LISTING_CACHE_TTL_SECONDS = 60.0

type StoreKey = Literal["A", "B"]


def _is_listing_payload(payload: object) -> bool:
    return isinstance(payload, dict) and "originProduct" in payload


@dataclass(frozen=True, slots=True)
class SmartstoreConfig:
    """Credentials and transport settings for one Smartstore seller account."""

    store: StoreKey
    client_id: str
    client_secret: str
    resilience: ResilienceConfig


def get_smartstore_config(
    store: StoreKey,
    *,
    resilience: ResilienceConfig | None = None,
) -> SmartstoreConfig:
    id_var = f"STORE_{store}_CLIENT_ID"
    secret_var = f"STORE_{store}_CLIENT_SECRET"
    values = require_env_vars((id_var, secret_var))
    # The primary store is only ever read from, so its listing reads may be cached.
    cache = (
        CacheConfig(
            backend="memory",
            ttl_seconds=LISTING_CACHE_TTL_SECONDS,
            should_cache=_is_listing_payload,
        )
        if store == "A"
        else None
    )
    return SmartstoreConfig(
        store=store,
        client_id=values[id_var],
        client_secret=values[secret_var],
        resilience=resilience
        or ResilienceConfig(
            name=f"smartstore-{store.lower()}",
            base_url=SMARTSTORE_BASE_URL,
            timeout_seconds=SMARTSTORE_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
            retry=RetryPolicy(total=3),
            cache=cache,
        ),
    )
