"""Ports for the marketplace channel adapters.

Each vendor adapter hides its wire protocol (signing, pagination, backoff) behind
these protocols and hands the engine normalized ``OrderLineDetail`` values.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from returnsync.domain.model import (
        Channel,
        ListingCopySettings,
        ListingDetail,
        ListingDraft,
        OrderLineDetail,
        StockChange,
    )


class ChannelError(RuntimeError):
    """Raised when a channel call fails after the adapter's own retries."""

    def __init__(self, message: str, *, channel: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.channel = channel
        self.status_code = status_code


class ListingNotFoundError(ChannelError):
    """Raised when a listing no longer exists on the channel."""


@runtime_checkable
class OrderLineSource(Protocol):
    @property
    def code(self) -> Channel: ...

    async def get_order_line_detail(self, order_line_ids: Sequence[str]) -> list[OrderLineDetail]: ...


@runtime_checkable
class ReturnSourceChannel(OrderLineSource, Protocol):
    """Channel whose completed returns feed the reconciliation engine."""

    async def list_completed_returns(self, start: datetime, end: datetime) -> list[str]: ...

    async def get_listing(
        self,
        listing_id: str,
        *,
        origin_product_id: str | None = None,
    ) -> ListingDetail: ...


@runtime_checkable
class SalesChannel(OrderLineSource, Protocol):
    """Channel whose order status changes are collected into the sales ledger."""

    async def list_order_status_changes(self, start: datetime, end: datetime) -> list[str]: ...


@runtime_checkable
class SecondaryStorefront(Protocol):
    """Storefront that mirrors returned stock from the primary storefront."""

    @property
    def code(self) -> Channel: ...

    async def get_listing(self, listing_id: str) -> ListingDetail: ...

    async def create_listing(self, draft: ListingDraft) -> str: ...

    async def increase_listing_stock(self, listing_id: str, quantity: int) -> StockChange: ...

    def build_listing_copy(
        self,
        source: ListingDetail,
        *,
        quantity: int,
        option_name: str | None,
        settings: ListingCopySettings,
    ) -> ListingDraft: ...
