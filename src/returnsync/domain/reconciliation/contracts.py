"""Value types shared by the matcher, the propagation step and the engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from returnsync.domain.model import CanonicalStockRecord, Channel


class ConfigKey(StrEnum):
    LAST_SYNC_TIME = "last_sync_time"
    SYNC_ENABLED = "sync_enabled"
    SYNC_INTERVAL_MINUTES = "sync_interval_minutes"
    PENDING_RETRY_ORDERS = "pending_retry_orders"
    STORE_B_NAME_PREFIX = "store_b_name_prefix"
    STORE_B_DISPLAY_STATUS = "store_b_display_status"
    STORE_B_SALE_STATUS = "store_b_sale_status"
    STORE_B_ADDRESS_ID = "store_b_address_id"

    @staticmethod
    def sales_watermark(channel: Channel) -> str:
        return f"sales_last_fetch_{channel.value.lower()}"


class MatchAction(StrEnum):
    UPDATE = "update"
    CREATE = "create"
    SKIP = "skip"


class MatchType(StrEnum):
    DIRECT = "direct"
    EXACT = "exact"
    FUZZY = "fuzzy"


class SkipReason(StrEnum):
    ALREADY_PROCESSED = "already-processed"
    MANUAL_UPDATE_DETECTED = "manual-update-detected"


@dataclass(frozen=True, slots=True, kw_only=True)
class StockDraft:
    """Everything needed to register a brand-new stock record."""

    name: str
    color: str
    brand: str
    quantity: int
    channel_product_id: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class MatchDecision:
    """What to do with one return.

    ``record`` is the row as the matcher saw it and ``new_quantity`` the count it
    expects after an update. The engine reloads the row before writing and refuses
    to apply when the stored quantity no longer leads to ``new_quantity``.
    """

    action: MatchAction
    record: CanonicalStockRecord | None = None
    match_type: MatchType | None = None
    reason: SkipReason | None = None
    new_quantity: int | None = None
    pending_link: str | None = None
    draft: StockDraft | None = None

    @classmethod
    def skip(
        cls,
        reason: SkipReason,
        *,
        record: CanonicalStockRecord | None = None,
        match_type: MatchType | None = None,
        pending_link: str | None = None,
    ) -> MatchDecision:
        return cls(
            action=MatchAction.SKIP,
            reason=reason,
            record=record,
            match_type=match_type,
            pending_link=pending_link,
        )


class CyclePhase(StrEnum):
    IDLE = "idle"
    COLLECTING = "collecting"
    DEDUPLICATING = "deduplicating"
    PROCESSING = "processing"
    SALES_COLLECTION = "sales-collection"


class CycleSkipReason(StrEnum):
    ALREADY_RUNNING = "already-running"
    MISSING_CREDENTIALS = "missing-credentials"


class ItemOutcome(StrEnum):
    UPDATED = "updated"
    CREATED = "created"
    SKIPPED = "skipped"


@dataclass(slots=True, kw_only=True)
class CycleResult:
    """Summary handed to manual callers and kept as the scheduler's last result."""

    run_id: str | None
    detected: int = 0
    processed: int = 0
    skipped: int = 0
    errors: int = 0
    skip_reason: CycleSkipReason | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    sales_inserted: dict[str, int] = field(default_factory=dict[str, int])

    @property
    def was_skipped(self) -> bool:
        return self.skip_reason is not None

    def as_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "detected": self.detected,
            "processed": self.processed,
            "skipped": self.skipped,
            "errors": self.errors,
            "skip_reason": self.skip_reason.value if self.skip_reason else None,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "sales_inserted": dict(self.sales_inserted),
        }
