from __future__ import annotations

import asyncio
from datetime import datetime, timedelta

from returnsync.config import SyncConfig
from returnsync.domain.model import AuditEntryType, AuditStatus, Channel
from returnsync.domain.ports import ChannelError
from returnsync.domain.reconciliation import ConfigKey, SalesCollector
from returnsync.domain.time_windows import format_timestamp, parse_timestamp
from tests.helpers.reconciliation import (
    T0,
    FakeClock,
    FakeSalesChannel,
    FakeStore,
    make_order_line,
    no_sleep,
)


class FlakySalesChannel(FakeSalesChannel):
    """Fails on the first chunk only."""

    def __init__(self) -> None:
        super().__init__(Channel.STORE_B, [make_order_line("PO-9", channel=Channel.STORE_B)])

    async def list_order_status_changes(self, start: datetime, end: datetime) -> list[str]:
        self.windows.append((start, end))
        if len(self.windows) == 1:
            raise ChannelError("range too wide", channel="B", status_code=400)
        return list(self.lines)


def _collector(store: FakeStore, *channels: FakeSalesChannel, clock: FakeClock) -> SalesCollector:
    return SalesCollector(
        channels,
        unit_of_work_factory=store,
        config=SyncConfig(),
        clock=clock,
        sleep=no_sleep,
    )


def test_collect_walks_the_window_in_day_chunks() -> None:
    clock = FakeClock(T0)
    key = ConfigKey.sales_watermark(Channel.COUPANG)
    store = FakeStore(config={key: format_timestamp(T0 - timedelta(hours=50))})
    channel = FakeSalesChannel(Channel.COUPANG, [make_order_line("CPG_1_1", channel=Channel.COUPANG)])

    inserted = asyncio.run(_collector(store, channel, clock=clock).collect("run-1"))

    assert inserted == {"C": 1}
    assert len(channel.windows) == 3
    assert channel.windows[0][0] == T0 - timedelta(hours=50)
    assert channel.windows[-1][1] == T0
    assert parse_timestamp(store.config.get(key)) == T0
    assert list(store.sales.orders) == ["CPG_1_1"]


def test_failed_chunk_is_skipped_and_watermark_still_advances() -> None:
    clock = FakeClock(T0)
    key = ConfigKey.sales_watermark(Channel.STORE_B)
    store = FakeStore(config={key: format_timestamp(T0 - timedelta(hours=30))})
    channel = FlakySalesChannel()

    inserted = asyncio.run(_collector(store, channel, clock=clock).collect("run-1"))

    assert inserted == {"B": 1}
    assert parse_timestamp(store.config.get(key)) == T0
    [entry] = store.audit.of_type(AuditEntryType.SALES_COLLECTED)
    assert entry.status is AuditStatus.SUCCESS
    assert entry.message == "1 new orders, 1 chunk(s) skipped"


def test_channel_watermark_ahead_of_the_clock_resets_to_now() -> None:
    clock = FakeClock(T0)
    key = ConfigKey.sales_watermark(Channel.COUPANG)
    store = FakeStore(config={key: format_timestamp(T0 + timedelta(hours=2))})
    channel = FakeSalesChannel(Channel.COUPANG, [make_order_line("CPG_1_1", channel=Channel.COUPANG)])

    inserted = asyncio.run(_collector(store, channel, clock=clock).collect("run-1"))

    assert inserted == {"C": 0}
    assert channel.windows == []
    assert parse_timestamp(store.config.get(key)) == T0


def test_already_known_orders_are_not_inserted_again() -> None:
    clock = FakeClock(T0)
    store = FakeStore()
    channel = FakeSalesChannel(Channel.ZIGZAG, [make_order_line("ZZG_1_1", channel=Channel.ZIGZAG)])
    collector = _collector(store, channel, clock=clock)

    first = asyncio.run(collector.collect("run-1"))
    clock.advance(minutes=5)
    second = asyncio.run(collector.collect("run-2"))

    assert first == {"D": 1}
    assert second == {"D": 0}
    assert store.sales.orders["ZZG_1_1"].fetched_at == T0
