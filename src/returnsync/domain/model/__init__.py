"""Domain model for cross-channel return reconciliation."""

from __future__ import annotations

from .audit import AuditEntry, AuditFilter
from .enums import AuditEntryType, AuditStatus, Channel, MatchStatus
from .listing import (
    ListingCopySettings,
    ListingDetail,
    ListingDraft,
    SecondaryListingMapping,
    StockChange,
)
from .orders import OrderLineDetail, ReturnEvent
from .sales import SalesOrder
from .stock import DEFAULT_COLOR, CanonicalStockRecord, extract_brand

__all__ = [
    "DEFAULT_COLOR",
    "AuditEntry",
    "AuditEntryType",
    "AuditFilter",
    "AuditStatus",
    "CanonicalStockRecord",
    "Channel",
    "ListingCopySettings",
    "ListingDetail",
    "ListingDraft",
    "MatchStatus",
    "OrderLineDetail",
    "ReturnEvent",
    "SalesOrder",
    "SecondaryListingMapping",
    "StockChange",
    "extract_brand",
]
