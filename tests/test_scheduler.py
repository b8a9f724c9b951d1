from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from returnsync.config import SyncConfig
from returnsync.domain.reconciliation import ConfigKey, CycleSkipReason, ReconciliationEngine
from returnsync.domain.time_windows import format_timestamp
from returnsync.scheduler import JOB_ID, SyncScheduler
from tests.helpers.reconciliation import (
    T0,
    FakeClock,
    FakePrimaryStore,
    FakeSecondaryStore,
    FakeStore,
    no_sleep,
)


def _scheduler(
    store: FakeStore,
    *,
    configured: bool = True,
    clock: FakeClock | None = None,
) -> tuple[SyncScheduler, AsyncIOScheduler]:
    clock = clock or FakeClock(T0 + timedelta(hours=1))
    engine = ReconciliationEngine(
        unit_of_work_factory=store,
        primary=FakePrimaryStore([]) if configured else None,
        secondary=FakeSecondaryStore({}) if configured else None,
        config=SyncConfig(),
        clock=clock,
        sleep=no_sleep,
    )
    aps = AsyncIOScheduler()
    return SyncScheduler(engine, unit_of_work_factory=store, scheduler=aps, clock=clock), aps


def test_start_schedules_interval_job_and_persists_settings() -> None:
    store = FakeStore()
    sync, aps = _scheduler(store)

    async def run() -> None:
        sync.start(10)
        assert sync.active
        job = aps.get_job(JOB_ID)
        assert job is not None
        assert job.trigger.interval == timedelta(minutes=10)
        sync.stop()

    asyncio.run(run())

    assert not sync.active
    assert store.config.values[ConfigKey.SYNC_ENABLED] == "false"
    assert store.config.values[ConfigKey.SYNC_INTERVAL_MINUTES] == "10"


def test_restart_replaces_existing_job() -> None:
    store = FakeStore()
    sync, aps = _scheduler(store)

    async def run() -> None:
        sync.start(5)
        sync.start(15)
        assert len(aps.get_jobs()) == 1
        assert store.config.values[ConfigKey.SYNC_ENABLED] == "true"
        assert store.config.values[ConfigKey.SYNC_INTERVAL_MINUTES] == "15"
        sync.stop()

    asyncio.run(run())


def test_start_rejects_non_positive_interval() -> None:
    sync, _ = _scheduler(FakeStore())

    with pytest.raises(ValueError, match="positive"):
        sync.start(0)


def test_resume_only_when_previously_enabled() -> None:
    disabled = FakeStore(config={ConfigKey.SYNC_ENABLED: "false"})
    sync, _ = _scheduler(disabled)

    assert sync.resume_if_enabled() is False
    assert not sync.active

    enabled = FakeStore(config={ConfigKey.SYNC_ENABLED: "true", ConfigKey.SYNC_INTERVAL_MINUTES: "abc"})
    sync, aps = _scheduler(enabled)

    async def run() -> bool:
        resumed = sync.resume_if_enabled()
        job = aps.get_job(JOB_ID)
        assert job is not None
        assert job.trigger.interval == timedelta(minutes=5)
        sync.stop()
        return resumed

    assert asyncio.run(run()) is True


def test_run_cycle_now_rewinds_watermark() -> None:
    store = FakeStore(config={ConfigKey.LAST_SYNC_TIME: format_timestamp(T0)})
    sync, _ = _scheduler(store, configured=False)

    result = asyncio.run(sync.run_cycle_now(reset_hours=6))

    assert result.skip_reason is CycleSkipReason.MISSING_CREDENTIALS
    assert store.config.values[ConfigKey.LAST_SYNC_TIME] == format_timestamp(T0 - timedelta(hours=5))


def test_run_cycle_now_without_reset_keeps_watermark() -> None:
    store = FakeStore(config={ConfigKey.LAST_SYNC_TIME: format_timestamp(T0)})
    sync, _ = _scheduler(store, configured=False)

    asyncio.run(sync.run_cycle_now(reset_hours=0))

    assert store.config.values[ConfigKey.LAST_SYNC_TIME] == format_timestamp(T0)


def test_status_reports_config_and_last_result() -> None:
    store = FakeStore(config={ConfigKey.SYNC_ENABLED: "true", ConfigKey.SYNC_INTERVAL_MINUTES: "7"})
    sync, _ = _scheduler(store)

    asyncio.run(sync.run_cycle_now())
    status = sync.get_status()

    assert status.enabled is True
    assert status.active is False
    assert status.running is False
    assert status.has_channels is True
    assert status.interval_minutes == 7
    assert status.last_watermark == T0 + timedelta(hours=1)
    payload = status.as_dict()
    assert payload["last_watermark"] == format_timestamp(T0 + timedelta(hours=1))
    assert payload["last_result"]["errors"] == 0
