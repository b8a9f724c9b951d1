"""Watermark windows for the reconciliation cycle.

Every cycle looks at ``[watermark, now)``. The watermark is stored as an
ISO-8601 string in the config table and is always handled in UTC here.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Iterator

log = getLogger(__name__)


class Clock(Protocol):
    def __call__(self) -> datetime: ...


def utcnow() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        raise ValueError("Window bounds must include timezone information")
    return value.astimezone(UTC)


def since_watermark(
    watermark: datetime | None,
    *,
    now: datetime,
    initial_lookback: timedelta,
) -> tuple[datetime, datetime]:
    """Return ``[watermark, now)``, or the initial lookback window when nothing ran yet.

    A watermark ahead of ``now`` (the host clock stepped back) yields the empty
    window ``[now, now)`` so the caller can store ``now`` and carry on.
    """

    end = ensure_utc(now)
    if watermark is None:
        if initial_lookback < timedelta(0):
            raise ValueError("Initial lookback must be non-negative")
        return end - initial_lookback, end
    start = ensure_utc(watermark)
    if start > end:
        log.warning(
            "Watermark %s is ahead of the clock (%s); resuming from now",
            format_timestamp(start),
            format_timestamp(end),
        )
        return end, end
    return start, end


def rewind(now: datetime, hours: float) -> datetime:
    """Watermark that makes the next cycle re-read the last ``hours`` hours."""

    if hours <= 0:
        raise ValueError("Rewind hours must be positive")
    return ensure_utc(now) - timedelta(hours=hours)


def iter_chunks(start: datetime, end: datetime, size: timedelta) -> Iterator[tuple[datetime, datetime]]:
    """Split ``[start, end)`` into consecutive chunks of at most ``size``.

    Channel order-status endpoints refuse ranges longer than a day.
    """

    if size <= timedelta(0):
        raise ValueError("Chunk size must be positive")
    cursor = start
    while cursor < end:
        chunk_end = min(cursor + size, end)
        yield cursor, chunk_end
        cursor = chunk_end


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a stored watermark; naive values are taken as UTC."""

    if value is None or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise ValueError(f"Invalid ISO timestamp: {value}") from exc
    return parsed.replace(tzinfo=UTC) if parsed.tzinfo is None else parsed.astimezone(UTC)


def format_timestamp(value: datetime) -> str:
    aware = value if value.tzinfo else value.replace(tzinfo=UTC)
    return aware.astimezone(UTC).isoformat()


__all__ = [
    "Clock",
    "ensure_utc",
    "format_timestamp",
    "iter_chunks",
    "parse_timestamp",
    "rewind",
    "since_watermark",
    "utcnow",
]
