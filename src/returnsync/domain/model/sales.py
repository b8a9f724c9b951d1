"""Sales ledger rows collected from every channel."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .enums import Channel
    from .orders import OrderLineDetail


@dataclass(eq=False, kw_only=True)
class SalesOrder:
    channel: Channel
    order_line_id: str
    ordered_at: datetime
    product_name: str = ""
    option_name: str | None = None
    quantity: int = 1
    unit_price: int = 0
    total_amount: int = 0
    status: str = ""
    channel_product_id: str | None = None
    id: int | None = None
    fetched_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    @classmethod
    def from_order_line(cls, line: OrderLineDetail, *, fallback_date: datetime) -> SalesOrder:
        total = line.total_amount or line.unit_price * line.quantity
        return cls(
            channel=line.channel,
            order_line_id=line.order_line_id,
            ordered_at=line.ordered_at or fallback_date,
            product_name=line.product_name,
            option_name=line.option_name,
            quantity=line.quantity,
            unit_price=line.unit_price,
            total_amount=total,
            status=line.status,
            channel_product_id=line.channel_product_id,
        )
