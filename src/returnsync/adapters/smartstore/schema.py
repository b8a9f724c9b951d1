"""Pydantic models describing the Naver Commerce API payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _to_str(value: object) -> object:
    if isinstance(value, int):
        return str(value)
    return value


class CommerceBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TokenResponse(CommerceBaseModel):
    access_token: str
    expires_in: int = 600
    token_type: str | None = None


class LastChangedStatus(CommerceBaseModel):
    product_order_id: str = Field(alias="productOrderId")
    product_order_status: str | None = Field(default=None, alias="productOrderStatus")
    claim_type: str | None = Field(default=None, alias="claimType")
    claim_status: str | None = Field(default=None, alias="claimStatus")
    last_changed_type: str | None = Field(default=None, alias="lastChangedType")
    last_changed_date: str | None = Field(default=None, alias="lastChangedDate")

    _normalize_id = field_validator("product_order_id", mode="before")(_to_str)

    @property
    def is_completed_return(self) -> bool:
        claim_type = (self.claim_type or "").upper()
        claim_status = (self.claim_status or "").upper()
        order_status = (self.product_order_status or "").upper()
        return claim_type == "RETURN" and (
            claim_status == "RETURN_DONE" or order_status == "RETURNED"
        )


class MoreCursor(CommerceBaseModel):
    more_from: str = Field(alias="moreFrom")
    more_sequence: str = Field(alias="moreSequence")


class LastChangedStatusesData(CommerceBaseModel):
    last_change_statuses: list[LastChangedStatus] = Field(
        default_factory=list[LastChangedStatus], alias="lastChangeStatuses"
    )
    more: MoreCursor | None = None


class LastChangedStatusesResponse(CommerceBaseModel):
    data: LastChangedStatusesData | None = None


class ProductOrder(CommerceBaseModel):
    product_order_id: str = Field(alias="productOrderId")
    product_name: str = Field(default="", alias="productName")
    product_option: str | None = Field(default=None, alias="productOption")
    option_name: str | None = Field(default=None, alias="optionName")
    quantity: int = 1
    channel_product_no: str | None = Field(default=None, alias="channelProductNo")
    product_id: str | None = Field(default=None, alias="productId")
    original_product_id: str | None = Field(default=None, alias="originalProductId")
    product_order_status: str = Field(default="", alias="productOrderStatus")
    unit_price: int | None = Field(default=None, alias="unitPrice")
    sale_price: int | None = Field(default=None, alias="salePrice")
    total_payment_amount: int | None = Field(default=None, alias="totalPaymentAmount")
    total_product_amount: int | None = Field(default=None, alias="totalProductAmount")
    place_order_date: str | None = Field(default=None, alias="placeOrderDate")

    _normalize_ids = field_validator(
        "product_order_id",
        "channel_product_no",
        "product_id",
        "original_product_id",
        mode="before",
    )(_to_str)


class OrderInfo(CommerceBaseModel):
    order_id: str | None = Field(default=None, alias="orderId")
    order_date: str | None = Field(default=None, alias="orderDate")
    payment_date: str | None = Field(default=None, alias="paymentDate")

    _normalize_id = field_validator("order_id", mode="before")(_to_str)


class ProductOrderDetail(CommerceBaseModel):
    product_order: ProductOrder = Field(alias="productOrder")
    order: OrderInfo = Field(default_factory=OrderInfo)


class ProductOrderQueryResponse(CommerceBaseModel):
    data: list[ProductOrderDetail] = Field(default_factory=list[ProductOrderDetail])


class CreatedChannelProduct(CommerceBaseModel):
    channel_product_no: str | None = Field(default=None, alias="channelProductNo")

    _normalize_id = field_validator("channel_product_no", mode="before")(_to_str)


class CreateProductResponse(CommerceBaseModel):
    smartstore_channel_product_no: str | None = Field(
        default=None, alias="smartstoreChannelProductNo"
    )
    smartstore_channel_product: CreatedChannelProduct | None = Field(
        default=None, alias="smartstoreChannelProduct"
    )
    channel_product_no: str | None = Field(default=None, alias="channelProductNo")
    origin_product_no: str | None = Field(default=None, alias="originProductNo")

    _normalize_ids = field_validator(
        "smartstore_channel_product_no",
        "channel_product_no",
        "origin_product_no",
        mode="before",
    )(_to_str)

    @property
    def listing_id(self) -> str | None:
        nested = self.smartstore_channel_product
        return (
            self.smartstore_channel_product_no
            or (nested.channel_product_no if nested else None)
            or self.channel_product_no
            or self.origin_product_no
        )
