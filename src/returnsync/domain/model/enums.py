"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class Channel(StrEnum):
    """Marketplace channel codes as stored in audit and sales records."""

    STORE_A = "A"  # primary storefront
    STORE_B = "B"  # secondary storefront
    COUPANG = "C"
    ZIGZAG = "D"


class MatchStatus(StrEnum):
    MATCHED = "matched"
    MANUAL = "manual"
    UNMATCHED = "unmatched"


class AuditEntryType(StrEnum):
    RETURN_DETECTED = "return-detected"
    QUANTITY_INCREASED = "quantity-increased"
    LISTING_CREATED = "listing-created"
    STOCK_UPDATED = "stock-updated"
    PROPAGATION_ERROR = "propagation-error"
    SALES_COLLECTED = "sales-collected"


class AuditStatus(StrEnum):
    SUCCESS = "success"
    FAIL = "fail"
    SKIPPED = "skipped"
