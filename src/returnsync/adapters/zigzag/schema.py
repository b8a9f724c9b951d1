"""Pydantic models describing the Zigzag GraphQL payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _to_str(value: object) -> object:
    if isinstance(value, int):
        return str(value)
    return value


class ZigzagBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class GraphQLError(ZigzagBaseModel):
    message: str = ""


class GraphQLResponse(ZigzagBaseModel):
    data: dict[str, object] | None = None
    errors: list[GraphQLError] = Field(default_factory=list[GraphQLError])


class ProductInfo(ZigzagBaseModel):
    name: str = ""
    options: str | None = None


class Orderer(ZigzagBaseModel):
    name: str | None = None


class OrderSummary(ZigzagBaseModel):
    order_number: str = ""
    date_created: int | str | None = None
    date_paid: int | str | None = None
    orderer: Orderer | None = None

    _normalize_id = field_validator("order_number", mode="before")(_to_str)


class ItemRequest(ZigzagBaseModel):
    order_item_request_number: str | None = None
    type: str | None = None
    status: str | None = None
    requested_quantity: int | None = None
    date_requested: int | str | None = None

    _normalize_id = field_validator("order_item_request_number", mode="before")(_to_str)


class OrderItem(ZigzagBaseModel):
    order_item_number: str = ""
    quantity: int = 1
    unit_price: int | float | str | None = None
    product_id: str | None = None
    status: str = ""
    product_info: ProductInfo = Field(default_factory=ProductInfo)
    order: OrderSummary = Field(default_factory=OrderSummary)
    active_request_list: list[ItemRequest] = Field(default_factory=list[ItemRequest])

    _normalize_ids = field_validator("order_item_number", "product_id", mode="before")(_to_str)

    @property
    def price(self) -> int:
        try:
            return int(float(self.unit_price or 0))
        except ValueError:
            return 0


class OrderItemList(ZigzagBaseModel):
    total_count: int = 0
    item_list: list[OrderItem] = Field(default_factory=list[OrderItem])
