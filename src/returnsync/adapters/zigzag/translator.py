"""Translate Zigzag payloads into domain values."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta, timezone
from typing import TYPE_CHECKING

from returnsync.domain.model import Channel, OrderLineDetail

if TYPE_CHECKING:
    from .schema import OrderItem

KST = timezone(timedelta(hours=9), name="KST")
ORDER_LINE_PREFIX = "ZZG"
_MILLISECOND_EPOCH_THRESHOLD = 10**12


def to_ymd(value: datetime) -> int:
    """Zigzag filters take ``YYYYMMDD`` integers in Korean time."""

    aware = value if value.tzinfo else value.replace(tzinfo=UTC)
    day: date = aware.astimezone(KST).date()
    return day.year * 10000 + day.month * 100 + day.day


def parse_epoch(value: int | str | None) -> datetime | None:
    """Epoch timestamps arrive in seconds or milliseconds."""

    if value is None or value == "":
        return None
    number = int(value)
    if number < _MILLISECOND_EPOCH_THRESHOLD:
        return datetime.fromtimestamp(number, tz=UTC)
    return datetime.fromtimestamp(number / 1000, tz=UTC)


def order_line_id(item: OrderItem) -> str:
    return f"{ORDER_LINE_PREFIX}_{item.order.order_number}_{item.order_item_number}"


def translate_order_item(item: OrderItem) -> OrderLineDetail:
    quantity = item.quantity or 1
    unit_price = item.price
    return OrderLineDetail(
        order_line_id=order_line_id(item),
        channel=Channel.ZIGZAG,
        product_name=item.product_info.name,
        option_name=item.product_info.options or None,
        quantity=quantity,
        channel_product_id=item.product_id or None,
        status=item.status,
        unit_price=unit_price,
        total_amount=unit_price * quantity,
        ordered_at=parse_epoch(item.order.date_paid or item.order.date_created),
    )


def translate_returned_item(item: OrderItem) -> OrderLineDetail:
    request = item.active_request_list[0] if item.active_request_list else None
    quantity = (request.requested_quantity if request else None) or item.quantity or 1
    return OrderLineDetail(
        order_line_id=order_line_id(item),
        channel=Channel.ZIGZAG,
        product_name=item.product_info.name,
        option_name=item.product_info.options or None,
        quantity=quantity,
        channel_product_id=item.product_id or None,
        status=(request.status if request else None) or item.status,
        unit_price=item.price,
        total_amount=item.price * quantity,
        ordered_at=parse_epoch(
            (request.date_requested if request else None) or item.order.date_created
        ),
    )
