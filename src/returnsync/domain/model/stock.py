"""Canonical stock records: the channel-independent source of truth for on-hand quantity."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime

DEFAULT_COLOR = "기본"

_BRAND_PREFIX = re.compile(r"^([a-zA-Z]{2})\s")


def extract_brand(name: str | None) -> str:
    """Return the lowercase two-letter brand code a name starts with, or ``""``.

    >>> extract_brand("ps 니트 가디건")
    'ps'
    >>> extract_brand("[타이즈] 기모")
    ''
    """

    if not name:
        return ""
    match = _BRAND_PREFIX.match(name.strip())
    if match is None:
        return ""
    return match.group(1).lower()


@dataclass(eq=False, kw_only=True)
class CanonicalStockRecord:
    """One sellable name + color (+ size) combination and its on-hand quantity.

    ``updated_at`` is the last-mutated timestamp: it only moves when ``quantity``
    changes, never on link edits, so it can be compared against sync watermarks to
    spot out-of-band adjustments. ``restocked_at`` records when the reconciliation
    engine itself last changed the quantity; a change at or before it is not manual.
    """

    name: str
    color: str
    quantity: int = 0
    size: str | None = None
    brand: str = ""
    channel_product_id: str | None = None
    id: int | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    updated_at: datetime | None = None
    restocked_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.quantity < 0:
            raise ValueError(f"Stock quantity must be non-negative, got {self.quantity}")

    def set_quantity(self, quantity: int, *, at: datetime) -> None:
        if quantity < 0:
            raise ValueError(f"Stock quantity must be non-negative, got {quantity}")
        if quantity == self.quantity:
            return
        self.quantity = quantity
        self.updated_at = at

    def restock(self, amount: int, *, at: datetime) -> int:
        """Add ``amount`` returned units on behalf of the engine and return the new quantity."""

        if amount <= 0:
            raise ValueError(f"Restock amount must be positive, got {amount}")
        self.set_quantity(self.quantity + amount, at=at)
        self.restocked_at = at
        return self.quantity

    def attach_link(self, channel_product_id: str) -> bool:
        """Link the record to a source channel product; returns whether anything changed."""

        if not channel_product_id or self.channel_product_id == channel_product_id:
            return False
        self.channel_product_id = channel_product_id
        return True

    def modified_since(self, watermark: datetime | None) -> bool:
        """Whether someone other than the engine changed the quantity after ``watermark``."""

        if watermark is None or self.updated_at is None:
            return False
        if self.restocked_at is not None and self.updated_at <= self.restocked_at:
            return False
        return self.updated_at > watermark

    @property
    def label(self) -> str:
        parts = [self.name, self.color]
        if self.size:
            parts.append(self.size)
        return " / ".join(parts)
