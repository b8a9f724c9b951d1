"""Pydantic models describing the Coupang Open API payloads."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _to_str(value: object) -> object:
    if isinstance(value, int):
        return str(value)
    return value


class CoupangBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class OrderSheetItem(CoupangBaseModel):
    vendor_item_id: str = Field(alias="vendorItemId")
    vendor_item_name: str = Field(default="", alias="vendorItemName")
    seller_product_item_name: str | None = Field(default=None, alias="sellerProductItemName")
    shipping_count: int = Field(default=1, alias="shippingCount")
    order_price: int | None = Field(default=None, alias="orderPrice")
    sales_price: int | None = Field(default=None, alias="salesPrice")

    _normalize_id = field_validator("vendor_item_id", mode="before")(_to_str)


class OrderSheet(CoupangBaseModel):
    shipment_box_id: str = Field(alias="shipmentBoxId")
    order_id: str | None = Field(default=None, alias="orderId")
    ordered_at: str | None = Field(default=None, alias="orderedAt")
    paid_at: str | None = Field(default=None, alias="paidAt")
    status: str = ""
    order_items: list[OrderSheetItem] = Field(default_factory=list[OrderSheetItem], alias="orderItems")

    _normalize_ids = field_validator("shipment_box_id", "order_id", mode="before")(_to_str)


class OrderSheetPage(CoupangBaseModel):
    code: int | str | None = None
    message: str | None = None
    data: list[OrderSheet] = Field(default_factory=list[OrderSheet])
    next_token: str | None = Field(default=None, alias="nextToken")


class ReturnItem(CoupangBaseModel):
    vendor_item_id: str = Field(alias="vendorItemId")
    vendor_item_name: str = Field(default="", alias="vendorItemName")
    seller_product_item_name: str | None = Field(default=None, alias="sellerProductItemName")
    seller_product_id: str | None = Field(default=None, alias="sellerProductId")
    shipment_box_id: str | None = Field(default=None, alias="shipmentBoxId")
    return_quantity: int = Field(
        default=1, validation_alias=AliasChoices("returnQuantity", "purchaseCount")
    )

    _normalize_ids = field_validator(
        "vendor_item_id",
        "seller_product_id",
        "shipment_box_id",
        mode="before",
    )(_to_str)


class ReturnRequest(CoupangBaseModel):
    receipt_id: str = Field(alias="receiptId")
    order_id: str | None = Field(default=None, alias="orderId")
    receipt_status: str | None = Field(default=None, alias="receiptStatus")
    created_at: str | None = Field(default=None, alias="createdAt")
    return_items: list[ReturnItem] = Field(default_factory=list[ReturnItem], alias="returnItems")

    _normalize_ids = field_validator("receipt_id", "order_id", mode="before")(_to_str)


class ReturnRequestPage(CoupangBaseModel):
    code: int | str | None = None
    message: str | None = None
    data: list[ReturnRequest] = Field(default_factory=list[ReturnRequest])
    next_token: str | None = Field(default=None, alias="nextToken")
