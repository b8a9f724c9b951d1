"""Zigzag Open API configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

ZIGZAG_BASE_URL = "https://openapi.zigzag.kr/1"


@dataclass(frozen=True, slots=True)
class ZigzagConfig:
    access_key: str
    secret_key: str
    resilience: ResilienceConfig


def get_zigzag_config(*, resilience: ResilienceConfig | None = None) -> ZigzagConfig:
    values = require_env_vars(("ZIGZAG_ACCESS_KEY", "ZIGZAG_SECRET_KEY"))
    return ZigzagConfig(
        access_key=values["ZIGZAG_ACCESS_KEY"],
        secret_key=values["ZIGZAG_SECRET_KEY"],
        resilience=resilience
        or ResilienceConfig(
            name="zigzag",
            base_url=ZIGZAG_BASE_URL,
            ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
            # GraphQL queries are read-only POSTs.
            retry=RetryPolicy(total=3).allowing("POST"),
        ),
    )
