"""Audit records for every decision a reconciliation cycle makes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from .enums import AuditEntryType, AuditStatus

if TYPE_CHECKING:
    from collections.abc import Collection

    from .enums import Channel


@dataclass(eq=False, kw_only=True)
class AuditEntry:
    """One immutable decision record. Never updated or deleted once appended."""

    run_id: str
    entry_type: AuditEntryType
    source_channel: Channel
    destination_channel: Channel | None = None
    order_line_id: str | None = None
    channel_product_id: str | None = None
    product_name: str | None = None
    option_name: str | None = None
    quantity: int = 0
    status: AuditStatus = AuditStatus.SUCCESS
    message: str | None = None
    id: int | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))


@dataclass(frozen=True, slots=True, kw_only=True)
class AuditFilter:
    run_id: str | None = None
    order_line_id: str | None = None
    entry_types: Collection[AuditEntryType] | None = None
    status: AuditStatus | None = None
    limit: int | None = None

    def matches(self, entry: AuditEntry) -> bool:
        if self.run_id is not None and entry.run_id != self.run_id:
            return False
        if self.order_line_id is not None and entry.order_line_id != self.order_line_id:
            return False
        if self.entry_types is not None and entry.entry_type not in self.entry_types:
            return False
        return self.status is None or entry.status == self.status
