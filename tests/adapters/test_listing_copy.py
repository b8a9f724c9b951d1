from __future__ import annotations

from typing import Any

import pytest

from returnsync.adapters.smartstore.listing_copy import (
    build_listing_copy,
    build_stock_update,
    copy_price,
    discounted_price,
    prefixed,
)
from returnsync.domain.model import ListingCopySettings, ListingDetail

PREFIX = "(오늘출발)"


def _source(name: str = "hm 라쿤 울 니트") -> ListingDetail:
    payload: dict[str, Any] = {
        "originProduct": {
            "originProductNo": 222,
            "statusType": "SALE",
            "leafCategoryId": "50000803",
            "name": name,
            "detailContent": "<p>detail</p>",
            "images": {"representativeImage": {"url": "https://img/1.jpg"}},
            "salePrice": 39900,
            "stockQuantity": 7,
            "customerBenefit": {
                "immediateDiscountPolicy": {"discountMethod": {"value": 10, "unitType": "PERCENT"}}
            },
            "detailAttribute": {
                "afterServiceInfo": {"afterServiceTelephoneNumber": "010"},
                "naverShoppingSearchInfo": {"matchedCatalogId": 99, "catalogMatchingYn": True},
                "supplementProductInfo": {"supplementProducts": [{"name": "bag", "stockQuantity": 4}]},
                "optionInfo": {
                    "optionCombinationGroupNames": {"optionGroupName1": "색상"},
                    "optionCombinations": [
                        {"id": 1, "optionName1": "베이지", "stockQuantity": 2},
                        {"id": 2, "optionName1": "블랙", "stockQuantity": 5},
                    ],
                },
                "productInfoProvidedNoticeV2": {"x": 1},
            },
            "deliveryInfo": {
                "deliveryBundleGroupId": 12,
                "deliveryBundleGroupUsable": True,
                "claimDeliveryInfo": {"shippingAddressId": 1, "returnAddressId": 2, "returnDeliveryFee": 3000},
            },
        },
        "smartstoreChannelProduct": {"channelProductNo": 111, "channelProductName": name},
    }
    return ListingDetail(listing_id="111", name=name, stock_quantity=7, payload=payload)


def test_prefix_is_not_doubled() -> None:
    assert prefixed("니트", PREFIX) == f"{PREFIX} 니트"
    assert prefixed(f"{PREFIX} 니트", PREFIX) == f"{PREFIX} 니트"
    assert prefixed("니트", "") == "니트"


@pytest.mark.parametrize(
    ("origin", "expected"),
    [
        ({"salePrice": 30000}, 30000),
        (
            {
                "salePrice": 30000,
                "customerBenefit": {"immediateDiscountPolicy": {"discountMethod": {"value": 3000, "unitType": "WON"}}},
            },
            27000,
        ),
    ],
)
def test_discounted_price(origin: dict[str, Any], expected: int) -> None:
    assert discounted_price(origin) == expected


def test_copy_price_is_floored_to_ten_won() -> None:
    # 39900 - 10% = 35910, 85% = 30523.5
    assert copy_price(_source().payload["originProduct"]) == 30520


def test_copy_carries_only_the_returned_option_stock() -> None:
    draft = build_listing_copy(
        _source(),
        quantity=1,
        option_name="베이지",
        settings=ListingCopySettings(name_prefix=PREFIX),
    )

    origin = draft.payload["originProduct"]
    assert draft.name == f"{PREFIX} hm 라쿤 울 니트"
    assert draft.stock_quantity == 1
    assert origin["stockQuantity"] == 1
    assert origin["salePrice"] == 30520
    assert origin["statusType"] == "SALE"
    combinations = origin["detailAttribute"]["optionInfo"]["optionCombinations"]
    assert [combo["stockQuantity"] for combo in combinations] == [1, 0]
    assert all("id" not in combo for combo in combinations)
    assert origin["detailAttribute"]["optionInfo"]["optionCombinationGroupNames"] == {"optionGroupName1": "색상"}
    assert draft.payload["smartstoreChannelProduct"]["channelProductName"] == f"{PREFIX} hm 라쿤 울 니트"


def test_unknown_option_creates_plain_listing() -> None:
    draft = build_listing_copy(_source(), quantity=2, option_name="그린", settings=ListingCopySettings())

    assert "optionInfo" not in draft.payload["originProduct"]["detailAttribute"]
    assert draft.payload["originProduct"]["stockQuantity"] == 2


def test_copy_detaches_catalog_and_zeroes_supplements() -> None:
    draft = build_listing_copy(_source(), quantity=1, option_name=None, settings=ListingCopySettings())

    detail = draft.payload["originProduct"]["detailAttribute"]
    assert detail["naverShoppingSearchInfo"] == {"catalogMatchingYn": False}
    assert detail["supplementProductInfo"]["supplementProducts"][0]["stockQuantity"] == 0
    assert "productInfoProvidedNoticeV2" not in detail
    assert detail["afterServiceInfo"] == {"afterServiceTelephoneNumber": "010"}


def test_copy_leaves_source_payload_untouched() -> None:
    source = _source()

    build_listing_copy(source, quantity=1, option_name="베이지", settings=ListingCopySettings())

    origin = source.payload["originProduct"]
    assert origin["detailAttribute"]["supplementProductInfo"]["supplementProducts"][0]["stockQuantity"] == 4
    assert origin["deliveryInfo"]["claimDeliveryInfo"]["shippingAddressId"] == 1


def test_address_ids_are_dropped_without_configured_address() -> None:
    draft = build_listing_copy(_source(), quantity=1, option_name=None, settings=ListingCopySettings())

    delivery = draft.payload["originProduct"]["deliveryInfo"]
    assert "deliveryBundleGroupId" not in delivery
    assert delivery["deliveryBundleGroupUsable"] is False
    assert delivery["claimDeliveryInfo"] == {"returnDeliveryFee": 3000}


def test_configured_address_replaces_source_address() -> None:
    draft = build_listing_copy(
        _source(), quantity=1, option_name=None, settings=ListingCopySettings(address_id=4321)
    )

    claim = draft.payload["originProduct"]["deliveryInfo"]["claimDeliveryInfo"]
    assert claim["shippingAddressId"] == 4321
    assert claim["returnAddressId"] == 4321


def test_stock_update_strips_read_only_fields() -> None:
    body = build_stock_update(_source().payload, 9)

    origin = body["originProduct"]
    assert origin["stockQuantity"] == 9
    assert "originProductNo" not in origin
    assert "deliveryBundleGroupId" not in origin["deliveryInfo"]
    stocks = [combo["stockQuantity"] for combo in origin["detailAttribute"]["optionInfo"]["optionCombinations"]]
    assert stocks == [9, 0]
    channel = body["smartstoreChannelProduct"]
    assert "channelProductNo" not in channel
    assert channel["channelProductDisplayStatusType"] == "ON"
