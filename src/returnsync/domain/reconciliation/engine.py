"""Reconciliation cycle: detect primary returns, restock, mirror, collect sales.

One ``ReconciliationEngine`` is owned by whoever runs cycles (the scheduler or a
manual trigger). It holds the single-flight flag and the current phase, so two
overlapping triggers never process the same window concurrently.

Durability is per step: every audit entry, ledger change and stock update is
committed in its own unit of work, so a crash mid-item leaves enough evidence for
the next cycle to pick up where this one stopped without double-applying.
"""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING
from uuid import uuid4

from returnsync.config import SyncConfig
from returnsync.domain.model import (
    AuditEntry,
    AuditEntryType,
    AuditStatus,
    CanonicalStockRecord,
    ListingCopySettings,
    ReturnEvent,
)
from returnsync.domain.time_windows import (
    format_timestamp,
    parse_timestamp,
    since_watermark,
    utcnow,
)

from .contracts import (
    ConfigKey,
    CyclePhase,
    CycleResult,
    CycleSkipReason,
    ItemOutcome,
    MatchAction,
    MatchDecision,
    SkipReason,
)
from .errors import StockRecordChangedError, StockRecordMissingError
from .matcher import CanonicalMatcher
from .notify import notify_quietly
from .propagation import SecondaryPropagator
from .retry_ledger import RetryLedger
from .sales import SalesCollector

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable, Sequence
    from datetime import datetime

    from returnsync.domain.model import OrderLineDetail
    from returnsync.domain.ports import (
        ConfigRepository,
        Notifier,
        ReconciliationUnitOfWork,
        ReturnSourceChannel,
        SalesChannel,
        SecondaryStorefront,
    )
    from returnsync.domain.time_windows import Clock

log = getLogger(__name__)


def dedupe_order_line_ids(*groups: Iterable[str]) -> list[str]:
    """Merge id groups, keeping the first occurrence of each id in order."""

    seen: dict[str, None] = {}
    for group in groups:
        for order_line_id in group:
            if order_line_id:
                seen.setdefault(order_line_id, None)
    return list(seen)


def load_copy_settings(config: ConfigRepository) -> ListingCopySettings:
    """Listing copy settings as stored, falling back to the defaults per key."""

    defaults = ListingCopySettings()
    prefix = config.get(ConfigKey.STORE_B_NAME_PREFIX)
    address = config.get(ConfigKey.STORE_B_ADDRESS_ID)
    address_id: int | None = None
    if address and address.strip():
        try:
            address_id = int(address)
        except ValueError:
            log.warning("Ignoring non-numeric %s value %r", ConfigKey.STORE_B_ADDRESS_ID, address)
    return ListingCopySettings(
        name_prefix=defaults.name_prefix if prefix is None else prefix,
        display_status=config.get(ConfigKey.STORE_B_DISPLAY_STATUS) or defaults.display_status,
        sale_status=config.get(ConfigKey.STORE_B_SALE_STATUS) or defaults.sale_status,
        address_id=address_id,
    )


class ReconciliationEngine:
    def __init__(
        self,
        *,
        unit_of_work_factory: Callable[[], ReconciliationUnitOfWork],
        primary: ReturnSourceChannel | None,
        secondary: SecondaryStorefront | None,
        sales_channels: Sequence[SalesChannel] = (),
        notifier: Notifier | None = None,
        config: SyncConfig | None = None,
        clock: Clock = utcnow,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._primary = primary
        self._secondary = secondary
        self._notifier = notifier
        self._config = config or SyncConfig()
        self._clock = clock
        self._sleep = sleep
        self._sales = SalesCollector(
            sales_channels,
            unit_of_work_factory=unit_of_work_factory,
            config=self._config,
            clock=clock,
            sleep=sleep,
        )
        self._running = False
        self.phase = CyclePhase.IDLE
        self.last_result: CycleResult | None = None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def has_channels(self) -> bool:
        return self._primary is not None and self._secondary is not None

    def last_watermark(self) -> datetime | None:
        with self._uow_factory() as uow:
            return parse_timestamp(uow.repositories.config.get(ConfigKey.LAST_SYNC_TIME))

    async def run_cycle(self) -> CycleResult:
        """Run one cycle; overlapping or unconfigured calls return a skipped result."""

        if self._running:
            log.info("Reconciliation cycle already running, skipping trigger")
            return CycleResult(run_id=None, skip_reason=CycleSkipReason.ALREADY_RUNNING)
        if self._primary is None or self._secondary is None:
            log.warning("Storefront credentials are not configured, skipping cycle")
            return CycleResult(run_id=None, skip_reason=CycleSkipReason.MISSING_CREDENTIALS)

        self._running = True
        result = CycleResult(run_id=uuid4().hex, started_at=self._clock())
        try:
            await self._run(result, self._primary, self._secondary)
        except Exception as exc:  # noqa: BLE001 - a failed cycle must not kill the timer
            result.errors += 1
            log.exception("Reconciliation cycle %s aborted in phase %s", result.run_id, self.phase)
            self._record_cycle_error(result, exc)
        finally:
            self._running = False
            self.phase = CyclePhase.IDLE
            result.finished_at = self._clock()
            self.last_result = result

        log.info(
            "Cycle %s finished: detected=%s processed=%s skipped=%s errors=%s",
            result.run_id,
            result.detected,
            result.processed,
            result.skipped,
            result.errors,
        )
        return result

    async def _run(
        self,
        result: CycleResult,
        primary: ReturnSourceChannel,
        secondary: SecondaryStorefront,
    ) -> None:
        run_id = result.run_id or ""

        self.phase = CyclePhase.COLLECTING
        with self._uow_factory() as uow:
            config = uow.repositories.config
            watermark = parse_timestamp(config.get(ConfigKey.LAST_SYNC_TIME))
            ledger = RetryLedger.loads(config.get(ConfigKey.PENDING_RETRY_ORDERS))
            settings = load_copy_settings(config)
        start, end = since_watermark(
            watermark,
            now=self._clock(),
            initial_lookback=self._config.initial_lookback,
        )
        log.info("Checking %s returns from %s to %s", primary.code.value, start, end)
        returned = await primary.list_completed_returns(start, end)

        self.phase = CyclePhase.DEDUPLICATING
        order_line_ids = dedupe_order_line_ids(returned, ledger)
        result.detected = len(order_line_ids)
        self._record_detection(run_id, primary, start, end, returned, ledger)

        self.phase = CyclePhase.PROCESSING
        if order_line_ids:
            propagator = SecondaryPropagator(
                primary=primary,
                secondary=secondary,
                unit_of_work_factory=self._uow_factory,
                clock=self._clock,
                notifier=self._notifier,
            )
            details = await self._fetch_details(primary, order_line_ids)
            for detail in details:
                await self._process_line(
                    result,
                    detail,
                    watermark=watermark,
                    ledger=ledger,
                    settings=settings,
                    propagator=propagator,
                )
                await self._sleep(self._config.item_pause_seconds)

        with self._uow_factory() as uow:
            uow.repositories.config.set(ConfigKey.LAST_SYNC_TIME, format_timestamp(end))
            uow.commit()

        self.phase = CyclePhase.SALES_COLLECTION
        if self._sales.channels:
            try:
                result.sales_inserted = await self._sales.collect(run_id)
            except Exception:  # noqa: BLE001 - sales are a side ledger
                log.exception("Sales collection failed")

    async def _fetch_details(
        self,
        primary: ReturnSourceChannel,
        order_line_ids: Sequence[str],
    ) -> list[OrderLineDetail]:
        details: list[OrderLineDetail] = []
        batch_size = self._config.detail_batch_size
        for offset in range(0, len(order_line_ids), batch_size):
            if offset:
                await self._sleep(self._config.batch_pause_seconds)
            batch = order_line_ids[offset : offset + batch_size]
            details.extend(await primary.get_order_line_detail(batch))
        return details

    async def _process_line(
        self,
        result: CycleResult,
        detail: OrderLineDetail,
        *,
        watermark: datetime | None,
        ledger: RetryLedger,
        settings: ListingCopySettings,
        propagator: SecondaryPropagator,
    ) -> None:
        run_id = result.run_id or ""
        event = ReturnEvent.from_order_line(detail, detected_at=self._clock())
        try:
            outcome = await self._reconcile(run_id, event, watermark, settings, propagator)
        except Exception as exc:  # noqa: BLE001 - one bad line never stops the cycle
            result.errors += 1
            log.warning(
                "Order line %s failed, queued for retry: %s",
                event.order_line_id,
                exc,
                exc_info=True,
            )
            self._record_item_error(run_id, event, exc)
            if ledger.add(event.order_line_id):
                self._save_ledger(ledger)
            return

        if outcome is ItemOutcome.SKIPPED:
            result.skipped += 1
        else:
            result.processed += 1
        if ledger.discard(event.order_line_id):
            self._save_ledger(ledger)

    async def _reconcile(
        self,
        run_id: str,
        event: ReturnEvent,
        watermark: datetime | None,
        settings: ListingCopySettings,
        propagator: SecondaryPropagator,
    ) -> ItemOutcome:
        with self._uow_factory() as uow:
            matcher = CanonicalMatcher(uow.repositories.stock, uow.repositories.audit)
            decision = matcher.resolve(event, watermark)

        if decision.reason is SkipReason.ALREADY_PROCESSED:
            log.info("Order line %s was already applied, skipping", event.order_line_id)
            return ItemOutcome.SKIPPED

        if propagator.already_propagated(event):
            log.info(
                "Order line %s already mirrored on the secondary storefront",
                event.order_line_id,
            )
        else:
            await propagator.propagate(run_id, event, settings)

        return await self._apply(run_id, event, decision)

    async def _apply(self, run_id: str, event: ReturnEvent, decision: MatchDecision) -> ItemOutcome:
        now = self._clock()
        with self._uow_factory() as uow:
            stock = uow.repositories.stock
            if decision.action is MatchAction.CREATE:
                draft = decision.draft
                if draft is None:  # pragma: no cover - the matcher always sets it
                    raise StockRecordMissingError("Create decision without a draft")
                record = CanonicalStockRecord(
                    name=draft.name,
                    color=draft.color,
                    brand=draft.brand,
                    quantity=draft.quantity,
                    channel_product_id=draft.channel_product_id,
                    created_at=now,
                )
                stock.add(record)
                message = f"new record {record.label} with quantity {record.quantity}"
                status = AuditStatus.SUCCESS
                outcome = ItemOutcome.CREATED
            else:
                record = self._reload(stock.get, decision)
                if decision.pending_link:
                    record.attach_link(decision.pending_link)
                if decision.action is MatchAction.SKIP:
                    message = (
                        f"{decision.match_type} match {record.label}: quantity edited since "
                        f"last sync, left at {record.quantity}"
                    )
                    status = AuditStatus.SKIPPED
                    outcome = ItemOutcome.SKIPPED
                else:
                    before = record.quantity
                    if decision.new_quantity != before + event.quantity:
                        raise StockRecordChangedError(
                            f"Stock record {record.id} holds {before}, but the match "
                            f"expected {decision.new_quantity} after adding {event.quantity}"
                        )
                    record.restock(event.quantity, at=now)
                    message = (
                        f"{decision.match_type} match {record.label}: "
                        f"{before} -> {record.quantity}"
                    )
                    status = AuditStatus.SUCCESS
                    outcome = ItemOutcome.UPDATED

            uow.repositories.audit.append(
                AuditEntry(
                    run_id=run_id,
                    entry_type=AuditEntryType.STOCK_UPDATED,
                    source_channel=event.channel,
                    order_line_id=event.order_line_id,
                    channel_product_id=event.channel_product_id,
                    product_name=event.product_name,
                    option_name=event.option_name,
                    quantity=event.quantity,
                    status=status,
                    message=message,
                    created_at=now,
                )
            )
            uow.commit()

        log.info("Order line %s: %s", event.order_line_id, message)
        if outcome is not ItemOutcome.SKIPPED:
            await notify_quietly(
                self._notifier,
                "Stock restored from return",
                f"{event.product_name} ({event.option_name or '-'}) +{event.quantity}",
            )
        return outcome

    @staticmethod
    def _reload(
        get: Callable[[int], CanonicalStockRecord | None],
        decision: MatchDecision,
    ) -> CanonicalStockRecord:
        if decision.record is None or decision.record.id is None:
            raise StockRecordMissingError("Decision does not reference a stored record")
        record = get(decision.record.id)
        if record is None:
            raise StockRecordMissingError(f"Stock record {decision.record.id} no longer exists")
        return record

    def _record_detection(
        self,
        run_id: str,
        primary: ReturnSourceChannel,
        start: datetime,
        end: datetime,
        returned: Sequence[str],
        ledger: RetryLedger,
    ) -> None:
        if returned or ledger:
            message = (
                f"{len(returned)} returned, {len(ledger)} pending retry "
                f"({format_timestamp(start)} - {format_timestamp(end)})"
            )
        else:
            message = f"no returns ({format_timestamp(start)} - {format_timestamp(end)})"
        with self._uow_factory() as uow:
            uow.repositories.audit.append(
                AuditEntry(
                    run_id=run_id,
                    entry_type=AuditEntryType.RETURN_DETECTED,
                    source_channel=primary.code,
                    quantity=len(dedupe_order_line_ids(returned, ledger)),
                    message=message,
                    created_at=self._clock(),
                )
            )
            uow.commit()

    def _record_item_error(self, run_id: str, event: ReturnEvent, exc: Exception) -> None:
        with self._uow_factory() as uow:
            uow.repositories.audit.append(
                AuditEntry(
                    run_id=run_id,
                    entry_type=AuditEntryType.PROPAGATION_ERROR,
                    source_channel=event.channel,
                    destination_channel=self._secondary.code if self._secondary else None,
                    order_line_id=event.order_line_id,
                    channel_product_id=event.channel_product_id,
                    product_name=event.product_name,
                    option_name=event.option_name,
                    quantity=event.quantity,
                    status=AuditStatus.FAIL,
                    message=f"{type(exc).__name__}: {exc}",
                    created_at=self._clock(),
                )
            )
            uow.commit()

    def _record_cycle_error(self, result: CycleResult, exc: Exception) -> None:
        if self._primary is None:  # pragma: no cover - checked before the cycle starts
            return
        try:
            with self._uow_factory() as uow:
                uow.repositories.audit.append(
                    AuditEntry(
                        run_id=result.run_id or "",
                        entry_type=AuditEntryType.PROPAGATION_ERROR,
                        source_channel=self._primary.code,
                        status=AuditStatus.FAIL,
                        message=f"cycle aborted in {self.phase}: {type(exc).__name__}: {exc}",
                        created_at=self._clock(),
                    )
                )
                uow.commit()
        except Exception:  # noqa: BLE001 - the original error is already logged
            log.exception("Could not record the failure of cycle %s", result.run_id)

    def _save_ledger(self, ledger: RetryLedger) -> None:
        with self._uow_factory() as uow:
            uow.repositories.config.set(ConfigKey.PENDING_RETRY_ORDERS, ledger.dumps())
            uow.commit()
