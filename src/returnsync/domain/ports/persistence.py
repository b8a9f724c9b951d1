"""Ports for persisting reconciliation state."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Collection

    from returnsync.domain.model import (
        AuditEntry,
        AuditEntryType,
        AuditFilter,
        AuditStatus,
        CanonicalStockRecord,
        SalesOrder,
        SecondaryListingMapping,
    )


@runtime_checkable
class ConfigRepository(Protocol):
    """Single key-value store, last write wins."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


@runtime_checkable
class AuditRepository(Protocol):
    """Append-only decision log, doubling as the idempotency ledger."""

    def append(self, entry: AuditEntry) -> None: ...

    def query(self, criteria: AuditFilter) -> list[AuditEntry]: ...

    def has_entry(
        self,
        order_line_id: str,
        *,
        entry_types: Collection[AuditEntryType],
        status: AuditStatus,
    ) -> bool: ...


@runtime_checkable
class StockRepository(Protocol):
    def add(self, record: CanonicalStockRecord) -> None: ...

    def get(self, record_id: int) -> CanonicalStockRecord | None: ...

    def find_exact(self, name: str, color: str) -> CanonicalStockRecord | None: ...

    def find_like(self, name_fragment: str, color_fragment: str) -> CanonicalStockRecord | None: ...

    def find_by_link(
        self,
        channel_product_id: str,
        *,
        color: str | None = None,
    ) -> CanonicalStockRecord | None: ...

    def list_all(self) -> list[CanonicalStockRecord]: ...


@runtime_checkable
class ListingMappingRepository(Protocol):
    def get(self, source_product_id: str, source_option: str) -> SecondaryListingMapping | None: ...

    def upsert(self, mapping: SecondaryListingMapping) -> SecondaryListingMapping: ...

    def delete(self, source_product_id: str, source_option: str) -> bool: ...


@runtime_checkable
class SalesRepository(Protocol):
    def add_if_absent(self, order: SalesOrder) -> bool: ...
