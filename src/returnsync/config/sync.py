"""Reconciliation cycle defaults."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from .env import optional_float, optional_int

DEFAULT_INTERVAL_MINUTES = 5
DEFAULT_DETAIL_BATCH_SIZE = 50
DEFAULT_BATCH_PAUSE_SECONDS = 0.5
DEFAULT_ITEM_PAUSE_SECONDS = 0.5
DEFAULT_SALES_PAUSE_SECONDS = 0.3
DEFAULT_INITIAL_LOOKBACK = timedelta(hours=24)
DEFAULT_SALES_CHUNK = timedelta(hours=24)


@dataclass(frozen=True, slots=True)
class SyncConfig:
    interval_minutes: int = DEFAULT_INTERVAL_MINUTES
    detail_batch_size: int = DEFAULT_DETAIL_BATCH_SIZE
    batch_pause_seconds: float = DEFAULT_BATCH_PAUSE_SECONDS
    item_pause_seconds: float = DEFAULT_ITEM_PAUSE_SECONDS
    sales_pause_seconds: float = DEFAULT_SALES_PAUSE_SECONDS
    initial_lookback: timedelta = DEFAULT_INITIAL_LOOKBACK
    sales_chunk: timedelta = DEFAULT_SALES_CHUNK


def get_sync_config() -> SyncConfig:
    return SyncConfig(
        interval_minutes=optional_int("SYNC_INTERVAL_MINUTES", DEFAULT_INTERVAL_MINUTES),
        detail_batch_size=optional_int("SYNC_DETAIL_BATCH_SIZE", DEFAULT_DETAIL_BATCH_SIZE),
        batch_pause_seconds=optional_float("SYNC_BATCH_PAUSE_SECONDS", DEFAULT_BATCH_PAUSE_SECONDS),
        item_pause_seconds=optional_float("SYNC_ITEM_PAUSE_SECONDS", DEFAULT_ITEM_PAUSE_SECONDS),
    )
