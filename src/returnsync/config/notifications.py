"""Outbound notification configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy


@dataclass(frozen=True, slots=True)
class NotificationConfig:
    webhook_url: str | None
    resilience: ResilienceConfig


def get_notification_config() -> NotificationConfig:
    url = os.getenv("NOTIFY_WEBHOOK_URL")
    return NotificationConfig(
        webhook_url=url.strip() if url and url.strip() else None,
        resilience=ResilienceConfig(
            name="notifications",
            timeout_seconds=10.0,
            ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
            retry=RetryPolicy(total=2),
        ),
    )
