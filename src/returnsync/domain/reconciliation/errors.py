"""Errors raised inside a reconciliation cycle."""

from __future__ import annotations


class ReconciliationError(RuntimeError):
    """Base class for item-level reconciliation failures."""


class PropagationError(ReconciliationError):
    """Raised when a return cannot be mirrored on the secondary storefront."""


class StockRecordMissingError(ReconciliationError):
    """Raised when a matched stock record vanished before it could be updated."""


class StockRecordChangedError(ReconciliationError):
    """Raised when a matched stock record's quantity changed before the update was applied."""
