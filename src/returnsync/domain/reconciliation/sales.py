"""Pull order status changes from every channel into the sales ledger."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from returnsync.domain.model import AuditEntry, AuditEntryType, AuditStatus, SalesOrder
from returnsync.domain.ports import ChannelError
from returnsync.domain.time_windows import (
    format_timestamp,
    iter_chunks,
    parse_timestamp,
    since_watermark,
    utcnow,
)

from .contracts import ConfigKey

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence
    from datetime import datetime

    from returnsync.config import SyncConfig
    from returnsync.domain.ports import ReconciliationUnitOfWork, SalesChannel
    from returnsync.domain.time_windows import Clock

log = getLogger(__name__)


class SalesCollector:
    """Collect sales per channel, each channel on its own watermark."""

    def __init__(
        self,
        channels: Sequence[SalesChannel],
        *,
        unit_of_work_factory: Callable[[], ReconciliationUnitOfWork],
        config: SyncConfig,
        clock: Clock = utcnow,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._channels = tuple(channels)
        self._uow_factory = unit_of_work_factory
        self._config = config
        self._clock = clock
        self._sleep = sleep

    @property
    def channels(self) -> tuple[SalesChannel, ...]:
        return self._channels

    async def collect(self, run_id: str) -> dict[str, int]:
        """Collect every channel; returns inserted row counts keyed by channel code."""

        inserted: dict[str, int] = {}
        for channel in self._channels:
            code = channel.code
            try:
                inserted[code.value] = await self.collect_channel(run_id, channel)
            except Exception as exc:  # noqa: BLE001 - one channel never blocks the others
                log.exception("Sales collection for channel %s failed", code.value)
                self._record(run_id, channel, AuditStatus.FAIL, 0, str(exc))
        return inserted

    async def collect_channel(self, run_id: str, channel: SalesChannel) -> int:
        key = ConfigKey.sales_watermark(channel.code)
        with self._uow_factory() as uow:
            watermark = parse_timestamp(uow.repositories.config.get(key))
        start, end = since_watermark(
            watermark,
            now=self._clock(),
            initial_lookback=self._config.initial_lookback,
        )
        log.info("Collecting %s sales from %s to %s", channel.code.value, start, end)

        inserted = 0
        skipped_chunks = 0
        for chunk_start, chunk_end in iter_chunks(start, end, self._config.sales_chunk):
            try:
                inserted += await self._collect_chunk(channel, chunk_start, chunk_end)
            except ChannelError as exc:
                skipped_chunks += 1
                log.warning(
                    "Skipping %s sales chunk %s - %s: %s",
                    channel.code.value,
                    chunk_start,
                    chunk_end,
                    exc,
                )
            await self._sleep(self._config.sales_pause_seconds)

        with self._uow_factory() as uow:
            uow.repositories.config.set(key, format_timestamp(end))
            uow.commit()

        message = f"{inserted} new orders"
        if skipped_chunks:
            message += f", {skipped_chunks} chunk(s) skipped"
        self._record(run_id, channel, AuditStatus.SUCCESS, inserted, message)
        log.info("Collected %s new %s sales orders", inserted, channel.code.value)
        return inserted

    async def _collect_chunk(
        self,
        channel: SalesChannel,
        start: datetime,
        end: datetime,
    ) -> int:
        order_line_ids = await channel.list_order_status_changes(start, end)
        if not order_line_ids:
            return 0

        inserted = 0
        batch_size = self._config.detail_batch_size
        for offset in range(0, len(order_line_ids), batch_size):
            batch = order_line_ids[offset : offset + batch_size]
            details = await channel.get_order_line_detail(batch)
            with self._uow_factory() as uow:
                for detail in details:
                    order = SalesOrder.from_order_line(
                        detail,
                        fallback_date=end,
                    )
                    order.fetched_at = self._clock()
                    if uow.repositories.sales.add_if_absent(order):
                        inserted += 1
                uow.commit()
        return inserted

    def _record(
        self,
        run_id: str,
        channel: SalesChannel,
        status: AuditStatus,
        quantity: int,
        message: str,
    ) -> None:
        with self._uow_factory() as uow:
            uow.repositories.audit.append(
                AuditEntry(
                    run_id=run_id,
                    entry_type=AuditEntryType.SALES_COLLECTED,
                    source_channel=channel.code,
                    quantity=quantity,
                    status=status,
                    message=message,
                    created_at=self._clock(),
                )
            )
            uow.commit()
