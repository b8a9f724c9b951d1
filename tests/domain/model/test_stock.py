from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from returnsync.domain.model import (
    CanonicalStockRecord,
    Channel,
    MatchStatus,
    OrderLineDetail,
    ReturnEvent,
    SalesOrder,
    SecondaryListingMapping,
)

NOW = datetime(2024, 5, 1, tzinfo=UTC)


def test_stock_quantity_can_never_go_negative() -> None:
    with pytest.raises(ValueError, match="non-negative"):
        CanonicalStockRecord(name="x", color="y", quantity=-1)

    record = CanonicalStockRecord(name="x", color="y", quantity=1)
    with pytest.raises(ValueError, match="non-negative"):
        record.set_quantity(-3, at=NOW)
    with pytest.raises(ValueError, match="positive"):
        record.restock(0, at=NOW)
    assert record.quantity == 1


def test_restock_moves_updated_at_but_link_edits_do_not() -> None:
    record = CanonicalStockRecord(name="x", color="y", quantity=1)

    assert record.restock(2, at=NOW) == 3
    assert record.updated_at == NOW

    assert record.attach_link("CP-1") is True
    assert record.attach_link("CP-1") is False
    assert record.updated_at == NOW


def test_set_quantity_to_same_value_is_not_a_modification() -> None:
    record = CanonicalStockRecord(name="x", color="y", quantity=1)

    record.set_quantity(1, at=NOW)

    assert record.updated_at is None
    assert record.modified_since(NOW - timedelta(days=1)) is False


def test_modified_since_compares_against_watermark() -> None:
    record = CanonicalStockRecord(name="x", color="y", updated_at=NOW)

    assert record.modified_since(NOW - timedelta(seconds=1)) is True
    assert record.modified_since(NOW) is False
    assert record.modified_since(None) is False


def test_engine_restock_is_not_a_manual_modification() -> None:
    record = CanonicalStockRecord(name="x", color="y", quantity=1)

    record.restock(1, at=NOW)

    assert record.restocked_at == NOW
    assert record.modified_since(NOW - timedelta(seconds=1)) is False

    record.set_quantity(7, at=NOW + timedelta(minutes=1))

    assert record.modified_since(NOW - timedelta(seconds=1)) is True
    assert record.modified_since(NOW + timedelta(minutes=1)) is False


def test_label_includes_size_when_present() -> None:
    assert CanonicalStockRecord(name="니트", color="베이지").label == "니트 / 베이지"
    assert CanonicalStockRecord(name="니트", color="베이지", size="M").label == "니트 / 베이지 / M"


def test_return_event_from_order_line_normalizes_blanks() -> None:
    line = OrderLineDetail(
        order_line_id="PO-1",
        channel=Channel.STORE_A,
        product_name="니트",
        option_name="",
        quantity=0,
        channel_product_id="",
    )

    event = ReturnEvent.from_order_line(line, detected_at=NOW)

    assert event.option_name is None
    assert event.option_key == ""
    assert event.quantity == 1
    assert event.channel_product_id is None


def test_return_event_rejects_non_positive_quantity() -> None:
    with pytest.raises(ValueError, match="positive"):
        ReturnEvent(
            order_line_id="PO-1",
            channel=Channel.STORE_A,
            product_name="니트",
            option_name=None,
            quantity=0,
            channel_product_id=None,
            detected_at=NOW,
        )


def test_mapping_is_usable_only_with_a_listing_id() -> None:
    assert not SecondaryListingMapping(source_product_id="CP-1").is_usable
    assert not SecondaryListingMapping(
        source_product_id="CP-1",
        status=MatchStatus.MATCHED,
    ).is_usable
    assert SecondaryListingMapping(
        source_product_id="CP-1",
        secondary_listing_id="B-1",
        status=MatchStatus.MANUAL,
    ).is_usable


def test_sales_order_falls_back_to_chunk_end_and_computed_total() -> None:
    line = OrderLineDetail(
        order_line_id="CPG_1_2",
        channel=Channel.COUPANG,
        product_name="니트",
        quantity=2,
        unit_price=15000,
    )

    order = SalesOrder.from_order_line(line, fallback_date=NOW)

    assert order.ordered_at == NOW
    assert order.total_amount == 30000
    assert order.channel is Channel.COUPANG
