from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone
from typing import TYPE_CHECKING

from sqlalchemy import inspect, select

from returnsync.adapters.sqlalchemy import create_all_tables, start_mappers
from returnsync.adapters.sqlalchemy.mappings import audit_entry_table
from returnsync.domain.model import (
    AuditEntry,
    AuditEntryType,
    AuditStatus,
    CanonicalStockRecord,
    Channel,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine
    from sqlalchemy.orm import Session


def test_start_mappers_is_idempotent() -> None:
    # First invocation happens in the sqlite_engine fixture; calling again should be harmless.
    start_mappers()
    start_mappers()


def test_create_all_tables_registers_core_tables(sqlite_engine: Engine) -> None:
    create_all_tables(sqlite_engine)
    table_names = set(inspect(sqlite_engine).get_table_names())

    assert {"stock_record", "sync_config", "audit_entry", "listing_mapping", "sales_order"} <= table_names


def test_enums_are_stored_by_value(sqlite_session: Session) -> None:
    sqlite_session.add(
        AuditEntry(
            run_id="r1",
            entry_type=AuditEntryType.QUANTITY_INCREASED,
            source_channel=Channel.STORE_A,
            destination_channel=Channel.STORE_B,
            status=AuditStatus.SKIPPED,
        )
    )
    sqlite_session.commit()

    row = sqlite_session.execute(
        select(
            audit_entry_table.c.entry_type,
            audit_entry_table.c.source_channel,
            audit_entry_table.c.destination_channel,
            audit_entry_table.c.status,
        )
    ).one()

    assert tuple(row) == ("quantity-increased", "A", "B", "skipped")


def test_datetimes_come_back_as_utc(sqlite_session: Session) -> None:
    kst = timezone(timedelta(hours=9))
    record = CanonicalStockRecord(
        name="니트",
        color="베이지",
        created_at=datetime(2024, 5, 1, 18, 0, tzinfo=kst),
        updated_at=datetime(2024, 5, 1, 9, 30, tzinfo=UTC),
        restocked_at=datetime(2024, 5, 1, 18, 30, tzinfo=kst),
    )
    sqlite_session.add(record)
    sqlite_session.commit()
    record_id = record.id
    sqlite_session.expunge_all()

    loaded = sqlite_session.get(CanonicalStockRecord, record_id)

    assert loaded is not None
    assert loaded.created_at == datetime(2024, 5, 1, 9, 0, tzinfo=UTC)
    assert loaded.created_at.tzinfo is not None
    assert loaded.updated_at == datetime(2024, 5, 1, 9, 30, tzinfo=UTC)
    assert loaded.restocked_at == datetime(2024, 5, 1, 9, 30, tzinfo=UTC)
