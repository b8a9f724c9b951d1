"""Application orchestration entry points."""

from __future__ import annotations

import csv
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

from returnsync.adapters.coupang import build_coupang_marketplace
from returnsync.adapters.notifications import build_notifier
from returnsync.adapters.smartstore import build_smartstore_storefront
from returnsync.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, is_started, startup
from returnsync.adapters.zigzag import build_zigzag_marketplace
from returnsync.config import (
    MissingConfigurationError,
    get_coupang_config,
    get_notification_config,
    get_smartstore_config,
    get_sync_config,
    get_zigzag_config,
)
from returnsync.domain.model import (
    CanonicalStockRecord,
    MatchStatus,
    SecondaryListingMapping,
    extract_brand,
)
from returnsync.domain.reconciliation import ConfigKey, ReconciliationEngine, RetryLedger
from returnsync.domain.time_windows import utcnow
from returnsync.scheduler import SyncScheduler

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from pathlib import Path

    from returnsync.domain.ports import (
        ConfigRepository,
        Notifier,
        ReconciliationUnitOfWork,
        SalesChannel,
    )

log = getLogger(__name__)

CONFIG_DEFAULTS: dict[str, str] = {
    ConfigKey.SYNC_ENABLED: "false",
    ConfigKey.SYNC_INTERVAL_MINUTES: "5",
    ConfigKey.STORE_B_NAME_PREFIX: "(오늘출발)",
    ConfigKey.STORE_B_DISPLAY_STATUS: "ON",
    ConfigKey.STORE_B_SALE_STATUS: "SALE",
}


@dataclass(slots=True)
class Runtime:
    """Everything a process needs to run cycles, plus the adapters to close afterwards."""

    engine: ReconciliationEngine
    scheduler: SyncScheduler
    closeables: list[Any] = field(default_factory=list[Any])

    async def aclose(self) -> None:
        for closeable in self.closeables:
            await closeable.aclose()
        self.closeables.clear()


@dataclass(frozen=True, slots=True)
class SeedResult:
    added: int
    skipped: int


def _default_unit_of_work_factory() -> Callable[[], ReconciliationUnitOfWork]:
    if not is_started():
        startup()
    return SqlAlchemyUnitOfWork


def _optional[T](label: str, build: Callable[[], T]) -> T | None:
    try:
        return build()
    except MissingConfigurationError as exc:
        log.warning("%s is not configured: %s", label, exc)
        return None


def build_runtime(
    *,
    unit_of_work_factory: Callable[[], ReconciliationUnitOfWork] | None = None,
    notifier: Notifier | None = None,
) -> Runtime:
    """Wire the engine and scheduler from environment configuration.

    Missing storefront credentials leave the engine without channels, so cycles
    report a skip instead of failing. Marketplaces C and D only feed the sales ledger.
    """

    uow_factory = unit_of_work_factory or _default_unit_of_work_factory()
    primary = _optional(
        "Store A",
        lambda: build_smartstore_storefront(get_smartstore_config("A")),
    )
    secondary = _optional(
        "Store B",
        lambda: build_smartstore_storefront(get_smartstore_config("B")),
    )
    coupang = _optional("Coupang", lambda: build_coupang_marketplace(get_coupang_config()))
    zigzag = _optional("Zigzag", lambda: build_zigzag_marketplace(get_zigzag_config()))
    sales_channels: list[SalesChannel] = [
        channel for channel in (primary, secondary, coupang, zigzag) if channel is not None
    ]

    effective_notifier = notifier or build_notifier(get_notification_config())
    closeables: list[Any] = [*sales_channels]
    if hasattr(effective_notifier, "aclose"):
        closeables.append(effective_notifier)

    with uow_factory() as uow:
        ensure_config_defaults(uow.repositories.config)
        uow.commit()

    engine = ReconciliationEngine(
        unit_of_work_factory=uow_factory,
        primary=primary,
        secondary=secondary,
        sales_channels=sales_channels,
        notifier=effective_notifier,
        config=get_sync_config(),
    )
    scheduler = SyncScheduler(engine, unit_of_work_factory=uow_factory)
    log.info(
        "Runtime ready: primary=%s secondary=%s sales_channels=%s",
        primary is not None,
        secondary is not None,
        [channel.code.value for channel in sales_channels],
    )
    return Runtime(engine=engine, scheduler=scheduler, closeables=closeables)


def ensure_config_defaults(config: ConfigRepository) -> list[str]:
    """Store default values for keys that were never set; returns the keys written."""

    written: list[str] = []
    for key, value in CONFIG_DEFAULTS.items():
        if config.get(key) is None:
            config.set(key, value)
            written.append(str(key))
    return written


def _read_seed_rows(path: Path) -> Iterable[dict[str, str]]:
    with path.open(newline="", encoding="utf-8-sig") as handle:
        reader = csv.DictReader(handle)
        if reader.fieldnames is None or not {"name", "color"} <= set(reader.fieldnames):
            raise ValueError(f"{path}: CSV header must contain 'name' and 'color' columns")
        yield from reader


def _seed_quantity(row: dict[str, str], line: int) -> int:
    raw = (row.get("quantity") or row.get("qty") or "0").strip()
    try:
        quantity = int(raw)
    except ValueError as exc:
        raise ValueError(f"line {line}: quantity must be an integer, got {raw!r}") from exc
    if quantity < 0:
        raise ValueError(f"line {line}: quantity must be non-negative, got {quantity}")
    return quantity


def seed_stock_from_csv(
    path: Path,
    *,
    unit_of_work_factory: Callable[[], ReconciliationUnitOfWork] | None = None,
) -> SeedResult:
    """Bulk-load stock records; rows matching an existing name + color are left alone."""

    uow_factory = unit_of_work_factory or _default_unit_of_work_factory()
    added = 0
    skipped = 0
    now = utcnow()
    with uow_factory() as uow:
        stock = uow.repositories.stock
        for line, row in enumerate(_read_seed_rows(path), start=2):
            name = (row.get("name") or "").strip()
            color = (row.get("color") or "").strip()
            if not name or not color:
                log.warning("Skipping seed line %s without name or color", line)
                skipped += 1
                continue
            if stock.find_exact(name, color) is not None:
                skipped += 1
                continue
            stock.add(
                CanonicalStockRecord(
                    name=name,
                    color=color,
                    size=(row.get("size") or "").strip() or None,
                    quantity=_seed_quantity(row, line),
                    brand=extract_brand(name),
                    channel_product_id=(row.get("channel_product_id") or "").strip() or None,
                    created_at=now,
                )
            )
            added += 1
        uow.commit()
    log.info("Seeded %s stock records from %s (%s skipped)", added, path, skipped)
    return SeedResult(added=added, skipped=skipped)


def set_manual_mapping(
    source_product_id: str,
    secondary_listing_id: str,
    *,
    source_option: str = "",
    secondary_listing_name: str | None = None,
    unit_of_work_factory: Callable[[], ReconciliationUnitOfWork] | None = None,
) -> SecondaryListingMapping:
    """Pin a source product/option to a secondary listing chosen by a person."""

    uow_factory = unit_of_work_factory or _default_unit_of_work_factory()
    with uow_factory() as uow:
        mapping = uow.repositories.mappings.upsert(
            SecondaryListingMapping(
                source_product_id=source_product_id,
                source_option=source_option,
                secondary_listing_id=secondary_listing_id,
                secondary_listing_name=secondary_listing_name,
                status=MatchStatus.MANUAL,
                updated_at=utcnow(),
            )
        )
        uow.commit()
    log.info(
        "Mapped source product %s (%s) to secondary listing %s",
        source_product_id,
        source_option or "-",
        secondary_listing_id,
    )
    return mapping


def list_pending_retries(
    *,
    unit_of_work_factory: Callable[[], ReconciliationUnitOfWork] | None = None,
) -> list[str]:
    uow_factory = unit_of_work_factory or _default_unit_of_work_factory()
    with uow_factory() as uow:
        return list(RetryLedger.loads(uow.repositories.config.get(ConfigKey.PENDING_RETRY_ORDERS)))


def clear_pending_retries(
    *,
    unit_of_work_factory: Callable[[], ReconciliationUnitOfWork] | None = None,
) -> int:
    """Drop every queued order line; returns how many were removed."""

    uow_factory = unit_of_work_factory or _default_unit_of_work_factory()
    with uow_factory() as uow:
        config = uow.repositories.config
        ledger = RetryLedger.loads(config.get(ConfigKey.PENDING_RETRY_ORDERS))
        removed = len(ledger)
        ledger.clear()
        config.set(ConfigKey.PENDING_RETRY_ORDERS, ledger.dumps())
        uow.commit()
    log.info("Cleared %s pending retries", removed)
    return removed
