"""Timer control surface around one reconciliation engine."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from returnsync.config.sync import DEFAULT_INTERVAL_MINUTES
from returnsync.domain.reconciliation import ConfigKey
from returnsync.domain.time_windows import format_timestamp, rewind, utcnow

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from returnsync.domain.ports import ReconciliationUnitOfWork
    from returnsync.domain.reconciliation import CycleResult, ReconciliationEngine
    from returnsync.domain.time_windows import Clock

log = getLogger(__name__)

JOB_ID = "returnsync-cycle"


@dataclass(frozen=True, slots=True, kw_only=True)
class SyncStatus:
    active: bool
    running: bool
    has_channels: bool
    enabled: bool
    interval_minutes: int
    last_watermark: datetime | None
    last_result: CycleResult | None

    def as_dict(self) -> dict[str, Any]:
        return {
            "active": self.active,
            "running": self.running,
            "has_channels": self.has_channels,
            "enabled": self.enabled,
            "interval_minutes": self.interval_minutes,
            "last_watermark": format_timestamp(self.last_watermark) if self.last_watermark else None,
            "last_result": self.last_result.as_dict() if self.last_result else None,
        }


def _parse_interval(raw: str | None) -> int:
    try:
        value = int(raw) if raw else DEFAULT_INTERVAL_MINUTES
    except ValueError:
        log.warning("Ignoring invalid %s value %r", ConfigKey.SYNC_INTERVAL_MINUTES, raw)
        return DEFAULT_INTERVAL_MINUTES
    return value if value > 0 else DEFAULT_INTERVAL_MINUTES


class SyncScheduler:
    """Runs cycles on an interval and on demand; owned by whoever bootstraps the process.

    The engine's own single-flight flag guards overlapping triggers, APScheduler's
    ``max_instances=1`` and ``coalesce=True`` keep a slow cycle from stacking ticks.
    """

    def __init__(
        self,
        engine: ReconciliationEngine,
        *,
        unit_of_work_factory: Callable[[], ReconciliationUnitOfWork],
        scheduler: AsyncIOScheduler | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self.engine = engine
        self._uow_factory = unit_of_work_factory
        self._scheduler = scheduler or AsyncIOScheduler(
            job_defaults={"coalesce": True, "max_instances": 1, "misfire_grace_time": 60},
        )
        self._clock = clock

    @property
    def active(self) -> bool:
        return self._scheduler.running and self._scheduler.get_job(JOB_ID) is not None

    async def run_cycle_now(self, reset_hours: float | None = None) -> CycleResult:
        """Run one cycle immediately, optionally rewinding the watermark first."""

        if reset_hours is not None and reset_hours > 0 and not self.engine.running:
            rewound = rewind(self._clock(), reset_hours)
            self._set(ConfigKey.LAST_SYNC_TIME, format_timestamp(rewound))
            log.info("Watermark rewound to %s (%s hours ago)", rewound, reset_hours)
        return await self.engine.run_cycle()

    def start(self, interval_minutes: int = DEFAULT_INTERVAL_MINUTES) -> None:
        """Schedule cycles every ``interval_minutes``; needs a running event loop."""

        if interval_minutes <= 0:
            raise ValueError(f"Interval must be positive, got {interval_minutes}")
        self._scheduler.add_job(
            self._tick,
            "interval",
            minutes=interval_minutes,
            id=JOB_ID,
            name="Return reconciliation cycle",
            replace_existing=True,
        )
        if not self._scheduler.running:
            self._scheduler.start()
        self._set(ConfigKey.SYNC_ENABLED, "true")
        self._set(ConfigKey.SYNC_INTERVAL_MINUTES, str(interval_minutes))
        log.info("Scheduler started, running every %s minutes", interval_minutes)

    def stop(self) -> None:
        if self._scheduler.get_job(JOB_ID) is not None:
            self._scheduler.remove_job(JOB_ID)
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._set(ConfigKey.SYNC_ENABLED, "false")
        log.info("Scheduler stopped")

    def resume_if_enabled(self) -> bool:
        """Restart the timer when it was left enabled; returns whether it started."""

        with self._uow_factory() as uow:
            config = uow.repositories.config
            enabled = config.get(ConfigKey.SYNC_ENABLED) == "true"
            interval = _parse_interval(config.get(ConfigKey.SYNC_INTERVAL_MINUTES))
        if not enabled:
            return False
        self.start(interval)
        return True

    def get_status(self) -> SyncStatus:
        with self._uow_factory() as uow:
            config = uow.repositories.config
            enabled = config.get(ConfigKey.SYNC_ENABLED) == "true"
            interval = _parse_interval(config.get(ConfigKey.SYNC_INTERVAL_MINUTES))
        return SyncStatus(
            active=self.active,
            running=self.engine.running,
            has_channels=self.engine.has_channels,
            enabled=enabled,
            interval_minutes=interval,
            last_watermark=self.engine.last_watermark(),
            last_result=self.engine.last_result,
        )

    async def _tick(self) -> None:
        result = await self.engine.run_cycle()
        if result.was_skipped:
            log.info("Scheduled cycle skipped: %s", result.skip_reason)

    def _set(self, key: str, value: str) -> None:
        with self._uow_factory() as uow:
            uow.repositories.config.set(key, value)
            uow.commit()
