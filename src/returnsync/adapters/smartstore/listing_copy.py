"""Build Commerce API request bodies for copying and restocking listings.

Listing reads return server-computed fields that the write endpoints reject, so
every body built here starts from a deep copy with those fields removed.
"""

from __future__ import annotations

import copy
import math
from typing import TYPE_CHECKING, Any, cast

from returnsync.domain.model import ListingDraft

from .translator import channel_product_of, origin_product_of

if TYPE_CHECKING:
    from returnsync.domain.model import ListingCopySettings, ListingDetail

COPY_PRICE_RATE = 0.85

READ_ONLY_ORIGIN_KEYS = (
    "originProductNo",
    "channelProducts",
    "channelProductNo",
    "registrationType",
    "createdDate",
    "modifiedDate",
    "wishlisted",
    "purchaseReviewCount",
    "brandStoreInfo",
    "knowledgeShoppingProductRegistration",
    "productLogistics",
    "commentCount",
    "bestProductInfo",
    "sellerManagementCode",
)
READ_ONLY_DETAIL_KEYS = ("productInfoProvidedNoticeV2", "certifications", "isbnInfo")
READ_ONLY_CHANNEL_KEYS = (
    "channelProductNo",
    "categoryChannelProductNo",
    "registerDate",
    "modifyDate",
)
COPIED_DETAIL_KEYS = (
    "afterServiceInfo",
    "originAreaInfo",
    "sellerCodeInfo",
    "purchaseQuantityInfo",
    "seoInfo",
    "productInfoProvidedNotice",
    "productAttributes",
    "taxType",
    "saleStartDate",
    "saleEndDate",
)


def _as_dict(value: object) -> dict[str, Any] | None:
    if isinstance(value, dict):
        return cast("dict[str, Any]", value)
    return None


def _as_list(value: object) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [cast("dict[str, Any]", item) for item in cast("list[object]", value) if isinstance(item, dict)]


def prefixed(name: str, prefix: str) -> str:
    if not prefix or name.startswith(prefix):
        return name
    return f"{prefix} {name}"


def discounted_price(origin: dict[str, Any]) -> int:
    """Sale price after the immediate discount, as shown to buyers."""

    price = int(origin.get("salePrice") or 0)
    benefit = _as_dict(origin.get("customerBenefit")) or {}
    policy = _as_dict(benefit.get("immediateDiscountPolicy")) or {}
    method = _as_dict(policy.get("discountMethod"))
    if not method:
        return price
    value = float(method.get("value") or 0)
    if method.get("unitType") == "PERCENT":
        return round(price * (1 - value / 100))
    return price - int(value)


def copy_price(origin: dict[str, Any], *, rate: float = COPY_PRICE_RATE) -> int:
    """``rate`` of the discounted price, floored to 10 won."""

    return math.floor(discounted_price(origin) * rate / 10) * 10


def _option_label(combination: dict[str, Any]) -> str:
    names = [combination.get(f"optionName{i}") for i in (1, 2, 3)]
    return "/".join(str(name) for name in names if name)


def _copy_option_info(detail: dict[str, Any], option_name: str | None, quantity: int) -> dict[str, Any] | None:
    """Copy option combinations with all stock zeroed except the returned option.

    Returns ``None`` when the returned option is not among the combinations, so
    the listing is created as a plain product carrying the whole quantity.
    """

    if not option_name:
        return None
    source = _as_dict(detail.get("optionInfo"))
    if source is None:
        return None
    combinations = _as_list(source.get("optionCombinations"))
    copied: list[dict[str, Any]] = []
    matched = False
    for combination in combinations:
        entry = {key: value for key, value in combination.items() if key != "id"}
        entry["stockQuantity"] = 0
        if not matched and (
            _option_label(combination) == option_name or combination.get("optionName1") == option_name
        ):
            entry["stockQuantity"] = quantity
            matched = True
        copied.append(entry)
    if not matched:
        return None
    option_info: dict[str, Any] = {"optionCombinations": copied, "useStockManagement": True}
    for key in ("optionCombinationSortType", "optionCombinationGroupNames"):
        if key in source:
            option_info[key] = copy.deepcopy(source[key])
    return option_info


def _copy_delivery_info(origin: dict[str, Any], address_id: int | None) -> dict[str, Any] | None:
    source = _as_dict(origin.get("deliveryInfo"))
    if source is None:
        return None
    delivery = copy.deepcopy(source)
    delivery.pop("deliveryBundleGroupId", None)
    delivery["deliveryBundleGroupUsable"] = False
    claim = _as_dict(delivery.get("claimDeliveryInfo"))
    if claim is not None:
        if address_id is not None:
            claim["shippingAddressId"] = address_id
            claim["returnAddressId"] = address_id
        else:
            # Address ids belong to the source seller; the target seller's defaults apply.
            claim.pop("shippingAddressId", None)
            claim.pop("returnAddressId", None)
    return delivery


def build_listing_copy(
    source: ListingDetail,
    *,
    quantity: int,
    option_name: str | None,
    settings: ListingCopySettings,
) -> ListingDraft:
    """Turn a primary-store listing into a creatable secondary-store product."""

    origin = origin_product_of(source.payload)
    channel = channel_product_of(source.payload) or {}
    base_name = str(origin.get("name") or source.name)
    channel_name = str(channel.get("channelProductName") or base_name)
    name = prefixed(base_name, settings.name_prefix)

    new_origin: dict[str, Any] = {
        "statusType": settings.sale_status,
        "saleType": origin.get("saleType") or "NEW",
        "leafCategoryId": origin.get("leafCategoryId") or "",
        "name": name,
        "detailContent": origin.get("detailContent") or "",
        "stockQuantity": quantity,
    }
    if "images" in origin:
        new_origin["images"] = copy.deepcopy(origin["images"])
    if "salePrice" in origin:
        new_origin["salePrice"] = copy_price(origin)

    detail = _as_dict(origin.get("detailAttribute"))
    if detail is not None:
        new_detail: dict[str, Any] = {
            key: copy.deepcopy(detail[key]) for key in COPIED_DETAIL_KEYS if detail.get(key) is not None
        }
        search_info = _as_dict(detail.get("naverShoppingSearchInfo"))
        if search_info is not None:
            # Catalog matching would tie the copy's stock to the source listing.
            search_info = dict(search_info)
            search_info.pop("matchedCatalogId", None)
            search_info["catalogMatchingYn"] = False
            new_detail["naverShoppingSearchInfo"] = search_info
        supplements = _as_dict(detail.get("supplementProductInfo"))
        if supplements is not None:
            supplements = copy.deepcopy(supplements)
            for item in _as_list(supplements.get("supplementProducts")):
                item["stockQuantity"] = 0
            new_detail["supplementProductInfo"] = supplements
        new_detail["minorPurchasable"] = detail.get("minorPurchasable", True)
        option_info = _copy_option_info(detail, option_name, quantity)
        if option_info is not None:
            new_detail["optionInfo"] = option_info
        new_origin["detailAttribute"] = new_detail

    delivery = _copy_delivery_info(origin, settings.address_id)
    if delivery is not None:
        new_origin["deliveryInfo"] = delivery

    payload: dict[str, Any] = {
        "originProduct": new_origin,
        "smartstoreChannelProduct": {
            "channelProductName": prefixed(channel_name, settings.name_prefix),
            "storeKeepExclusiveProduct": False,
            "channelProductDisplayStatusType": settings.display_status,
            "naverShoppingRegistration": True,
        },
    }
    return ListingDraft(name=name, stock_quantity=quantity, payload=payload)


def build_stock_update(payload: dict[str, Any], stock_quantity: int) -> dict[str, Any]:
    """Full-replacement update body setting the listing's total stock."""

    origin = copy.deepcopy(origin_product_of(payload))
    for key in READ_ONLY_ORIGIN_KEYS:
        origin.pop(key, None)
    detail = _as_dict(origin.get("detailAttribute"))
    if detail is not None:
        for key in READ_ONLY_DETAIL_KEYS:
            detail.pop(key, None)
    delivery = _as_dict(origin.get("deliveryInfo"))
    if delivery is not None:
        delivery.pop("deliveryBundleGroupId", None)

    origin["stockQuantity"] = stock_quantity
    # Total stock is derived from the option stocks, so the first option carries all of it.
    option_info = _as_dict(detail.get("optionInfo")) if detail is not None else None
    if option_info is not None:
        for key in ("optionStandards", "optionCombinations"):
            options = _as_list(option_info.get(key))
            for option in options:
                option["stockQuantity"] = 0
            if options:
                options[0]["stockQuantity"] = stock_quantity

    source_channel = channel_product_of(payload) or {}
    channel: dict[str, Any] = {
        key: value
        for key, value in source_channel.items()
        if key not in READ_ONLY_CHANNEL_KEYS and value is not None
    }
    channel["channelProductName"] = source_channel.get("channelProductName") or origin.get("name") or ""
    channel["channelProductDisplayStatusType"] = (
        source_channel.get("channelProductDisplayStatusType") or "ON"
    )
    channel.setdefault("storeKeepExclusiveProduct", False)
    channel.setdefault("naverShoppingRegistration", True)
    return {"originProduct": origin, "smartstoreChannelProduct": channel}
