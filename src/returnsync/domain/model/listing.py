"""Listings on storefronts and the mapping between source and secondary listings."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from .enums import MatchStatus


@dataclass(eq=False, kw_only=True)
class SecondaryListingMapping:
    """Which secondary-storefront listing mirrors a (source product, option) pair."""

    source_product_id: str
    source_option: str = ""
    source_product_name: str = ""
    secondary_listing_id: str | None = None
    secondary_listing_name: str | None = None
    status: MatchStatus = MatchStatus.UNMATCHED
    id: int | None = None
    updated_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    @property
    def is_usable(self) -> bool:
        return self.status is not MatchStatus.UNMATCHED and bool(self.secondary_listing_id)


@dataclass(frozen=True, slots=True, kw_only=True)
class ListingDetail:
    """A storefront listing: the fields the engine reads plus the vendor payload."""

    listing_id: str
    name: str
    stock_quantity: int
    payload: dict[str, Any] = field(default_factory=dict[str, Any])


@dataclass(frozen=True, slots=True, kw_only=True)
class ListingDraft:
    """A creatable listing built from a source listing."""

    name: str
    stock_quantity: int
    payload: dict[str, Any] = field(default_factory=dict[str, Any])


@dataclass(frozen=True, slots=True)
class StockChange:
    before: int
    after: int

    @property
    def delta(self) -> int:
        return self.after - self.before


@dataclass(frozen=True, slots=True, kw_only=True)
class ListingCopySettings:
    """Seller-tunable knobs applied when copying a listing to the secondary storefront."""

    name_prefix: str = "(오늘출발)"
    display_status: str = "ON"
    sale_status: str = "SALE"
    address_id: int | None = None
