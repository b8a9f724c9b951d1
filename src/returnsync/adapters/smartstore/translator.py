"""Translate Naver Commerce payloads into domain values."""

from __future__ import annotations

from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Any, cast

from returnsync.domain.model import ListingDetail, OrderLineDetail

if TYPE_CHECKING:
    from returnsync.domain.model import Channel

    from .schema import ProductOrderDetail

log = getLogger(__name__)


def parse_commerce_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    normalized = value.strip()
    if normalized.endswith("Z"):
        normalized = normalized[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        log.warning("Unparseable Commerce API timestamp: %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def format_commerce_datetime(value: datetime) -> str:
    aware = value if value.tzinfo else value.replace(tzinfo=UTC)
    return aware.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def translate_order_line(detail: ProductOrderDetail, *, channel: Channel) -> OrderLineDetail:
    po = detail.product_order
    quantity = po.quantity or 1
    unit_price = po.unit_price or po.sale_price or 0
    total = po.total_payment_amount or po.total_product_amount or unit_price * quantity
    channel_product_id = po.channel_product_no or po.product_id or po.original_product_id
    ordered_at = parse_commerce_datetime(
        detail.order.payment_date or detail.order.order_date or po.place_order_date
    )
    return OrderLineDetail(
        order_line_id=po.product_order_id,
        channel=channel,
        product_name=po.product_name,
        option_name=po.product_option or po.option_name or None,
        quantity=quantity,
        channel_product_id=channel_product_id or None,
        origin_product_id=po.original_product_id or None,
        status=po.product_order_status,
        unit_price=unit_price,
        total_amount=total,
        ordered_at=ordered_at,
    )


def origin_product_of(payload: dict[str, Any]) -> dict[str, Any]:
    """Channel product reads wrap ``originProduct``; origin product reads are bare."""

    origin = payload.get("originProduct")
    if isinstance(origin, dict):
        return cast("dict[str, Any]", origin)
    return payload


def channel_product_of(payload: dict[str, Any]) -> dict[str, Any] | None:
    channel = payload.get("smartstoreChannelProduct")
    if isinstance(channel, dict):
        return cast("dict[str, Any]", channel)
    return None


def translate_listing(payload: dict[str, Any], *, listing_id: str) -> ListingDetail:
    origin = origin_product_of(payload)
    channel = channel_product_of(payload) or {}
    name = channel.get("channelProductName") or origin.get("name") or ""
    return ListingDetail(
        listing_id=listing_id,
        name=str(name),
        stock_quantity=int(origin.get("stockQuantity") or 0),
        payload=payload,
    )
