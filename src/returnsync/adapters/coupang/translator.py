"""Translate Coupang payloads into domain values."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta, timezone
from logging import getLogger
from typing import TYPE_CHECKING

from returnsync.domain.model import Channel, OrderLineDetail

if TYPE_CHECKING:
    from .schema import OrderSheet, OrderSheetItem, ReturnItem, ReturnRequest

log = getLogger(__name__)

KST = timezone(timedelta(hours=9), name="KST")
ORDER_LINE_PREFIX = "CPG"


def to_kst_date(value: datetime) -> date:
    """Coupang filters by calendar day in Korean time."""

    aware = value if value.tzinfo else value.replace(tzinfo=UTC)
    return aware.astimezone(KST).date()


def parse_coupang_datetime(value: str | None) -> datetime | None:
    """Timestamps without an offset are Korean local time."""

    if not value:
        return None
    normalized = value.strip()
    if normalized.endswith("Z"):
        normalized = normalized[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        log.warning("Unparseable Coupang timestamp: %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=KST)
    return parsed.astimezone(UTC)


def order_line_id(shipment_box_id: str, vendor_item_id: str) -> str:
    return f"{ORDER_LINE_PREFIX}_{shipment_box_id}_{vendor_item_id}"


def return_line_id(request: ReturnRequest, item: ReturnItem) -> str:
    if item.shipment_box_id:
        return order_line_id(item.shipment_box_id, item.vendor_item_id)
    return f"{ORDER_LINE_PREFIX}_R{request.receipt_id}_{item.vendor_item_id}"


def translate_order_item(sheet: OrderSheet, item: OrderSheetItem) -> OrderLineDetail:
    quantity = item.shipping_count or 1
    unit_price = item.order_price or item.sales_price or 0
    return OrderLineDetail(
        order_line_id=order_line_id(sheet.shipment_box_id, item.vendor_item_id),
        channel=Channel.COUPANG,
        product_name=item.vendor_item_name,
        option_name=item.seller_product_item_name or None,
        quantity=quantity,
        channel_product_id=item.vendor_item_id or None,
        status=sheet.status,
        unit_price=unit_price,
        total_amount=unit_price * quantity,
        ordered_at=parse_coupang_datetime(sheet.ordered_at or sheet.paid_at),
    )


def translate_return_item(request: ReturnRequest, item: ReturnItem, *, status: str) -> OrderLineDetail:
    return OrderLineDetail(
        order_line_id=return_line_id(request, item),
        channel=Channel.COUPANG,
        product_name=item.vendor_item_name,
        option_name=item.seller_product_item_name or None,
        quantity=item.return_quantity or 1,
        channel_product_id=item.vendor_item_id or None,
        origin_product_id=item.seller_product_id or None,
        status=status,
        ordered_at=parse_coupang_datetime(request.created_at),
    )
