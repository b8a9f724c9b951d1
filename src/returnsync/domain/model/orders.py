"""Normalized order-line values produced at the channel adapter boundary."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from .enums import Channel


@dataclass(frozen=True, slots=True, kw_only=True)
class OrderLineDetail:
    """One order line as reported by a channel, whatever the vendor payload looked like."""

    order_line_id: str
    channel: Channel
    product_name: str
    option_name: str | None = None
    quantity: int = 1
    channel_product_id: str | None = None
    origin_product_id: str | None = None
    status: str = ""
    unit_price: int = 0
    total_amount: int = 0
    ordered_at: datetime | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ReturnEvent:
    """A returned line item that the engine has to reconcile."""

    order_line_id: str
    channel: Channel
    product_name: str
    option_name: str | None
    quantity: int
    channel_product_id: str | None
    detected_at: datetime
    origin_product_id: str | None = None

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise ValueError(f"Returned quantity must be positive, got {self.quantity}")

    @classmethod
    def from_order_line(cls, line: OrderLineDetail, *, detected_at: datetime) -> ReturnEvent:
        return cls(
            order_line_id=line.order_line_id,
            channel=line.channel,
            product_name=line.product_name,
            option_name=line.option_name or None,
            quantity=max(line.quantity, 1),
            channel_product_id=line.channel_product_id or None,
            origin_product_id=line.origin_product_id or None,
            detected_at=detected_at,
        )

    @property
    def option_key(self) -> str:
        """Option string as stored on listing mappings (``""`` when absent)."""

        return self.option_name or ""
