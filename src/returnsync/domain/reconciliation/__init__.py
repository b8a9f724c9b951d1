"""Cross-channel return reconciliation."""

from __future__ import annotations

from .contracts import (
    ConfigKey,
    CyclePhase,
    CycleResult,
    CycleSkipReason,
    ItemOutcome,
    MatchAction,
    MatchDecision,
    MatchType,
    SkipReason,
    StockDraft,
)
from .engine import ReconciliationEngine, dedupe_order_line_ids, load_copy_settings
from .errors import (
    PropagationError,
    ReconciliationError,
    StockRecordChangedError,
    StockRecordMissingError,
)
from .matcher import CanonicalMatcher
from .naming import normalize_product_name, option_as_color, search_keyword
from .propagation import SecondaryPropagator
from .retry_ledger import RetryLedger
from .sales import SalesCollector

__all__ = [
    "CanonicalMatcher",
    "ConfigKey",
    "CyclePhase",
    "CycleResult",
    "CycleSkipReason",
    "ItemOutcome",
    "MatchAction",
    "MatchDecision",
    "MatchType",
    "PropagationError",
    "ReconciliationEngine",
    "ReconciliationError",
    "RetryLedger",
    "SalesCollector",
    "SecondaryPropagator",
    "SkipReason",
    "StockDraft",
    "StockRecordChangedError",
    "StockRecordMissingError",
    "dedupe_order_line_ids",
    "load_copy_settings",
    "normalize_product_name",
    "option_as_color",
    "search_keyword",
]
