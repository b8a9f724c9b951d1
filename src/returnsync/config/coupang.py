"""Coupang Open API configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

COUPANG_BASE_URL = "https://api-gateway.coupang.com"


@dataclass(frozen=True, slots=True)
class CoupangConfig:
    access_key: str
    secret_key: str
    vendor_id: str
    resilience: ResilienceConfig


def get_coupang_config(*, resilience: ResilienceConfig | None = None) -> CoupangConfig:
    values = require_env_vars(("COUPANG_ACCESS_KEY", "COUPANG_SECRET_KEY", "COUPANG_VENDOR_ID"))
    return CoupangConfig(
        access_key=values["COUPANG_ACCESS_KEY"],
        secret_key=values["COUPANG_SECRET_KEY"],
        vendor_id=values["COUPANG_VENDOR_ID"],
        resilience=resilience
        or ResilienceConfig(
            name="coupang",
            base_url=COUPANG_BASE_URL,
            ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
            retry=RetryPolicy(total=3),
            headers={"X-Requested-By": "returnsync"},
        ),
    )
