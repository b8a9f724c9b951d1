"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import ColumnElement, exists, func, select

from returnsync.adapters.sqlalchemy.mappings import (
    audit_entry_table,
    listing_mapping_table,
    sales_order_table,
    stock_record_table,
    sync_config_table,
)
from returnsync.domain.model import (
    AuditEntry,
    CanonicalStockRecord,
    SalesOrder,
    SecondaryListingMapping,
)

if TYPE_CHECKING:
    from collections.abc import Collection

    from sqlalchemy import Column
    from sqlalchemy.orm import Session

    from returnsync.domain.model import AuditEntryType, AuditFilter, AuditStatus


class SqlAlchemyConfigRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, key: str) -> str | None:
        stmt = select(sync_config_table.c.value).where(sync_config_table.c.key == key)
        return self.session.execute(stmt).scalar_one_or_none()

    def set(self, key: str, value: str) -> None:
        now = datetime.now(tz=UTC)
        table = sync_config_table
        updated = self.session.execute(
            table.update().where(table.c.key == key).values(value=value, updated_at=now)
        )
        if updated.rowcount == 0:
            self.session.execute(table.insert().values(key=key, value=value, updated_at=now))

    def items(self) -> dict[str, str | None]:
        stmt = select(sync_config_table.c.key, sync_config_table.c.value).order_by(
            sync_config_table.c.key
        )
        return {key: value for key, value in self.session.execute(stmt)}


class SqlAlchemyAuditRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def append(self, entry: AuditEntry) -> None:
        self.session.add(entry)

    def query(self, criteria: AuditFilter) -> list[AuditEntry]:
        table = audit_entry_table
        stmt = select(AuditEntry)
        if criteria.run_id is not None:
            stmt = stmt.where(table.c.run_id == criteria.run_id)
        if criteria.order_line_id is not None:
            stmt = stmt.where(table.c.order_line_id == criteria.order_line_id)
        if criteria.entry_types is not None:
            stmt = stmt.where(table.c.entry_type.in_(list(criteria.entry_types)))
        if criteria.status is not None:
            stmt = stmt.where(table.c.status == criteria.status)
        stmt = stmt.order_by(table.c.created_at.desc(), table.c.id.desc())
        if criteria.limit is not None:
            stmt = stmt.limit(criteria.limit)
        return list(self.session.execute(stmt).scalars())

    def has_entry(
        self,
        order_line_id: str,
        *,
        entry_types: Collection[AuditEntryType],
        status: AuditStatus,
    ) -> bool:
        table = audit_entry_table
        stmt = select(
            exists()
            .where(table.c.order_line_id == order_line_id)
            .where(table.c.entry_type.in_(list(entry_types)))
            .where(table.c.status == status)
        )
        return bool(self.session.execute(stmt).scalar())


class SqlAlchemyStockRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, record: CanonicalStockRecord) -> None:
        self.session.add(record)
        self.session.flush()

    def get(self, record_id: int) -> CanonicalStockRecord | None:
        return self.session.get(CanonicalStockRecord, record_id)

    def find_exact(self, name: str, color: str) -> CanonicalStockRecord | None:
        table = stock_record_table
        stmt = (
            select(CanonicalStockRecord)
            .where(table.c.name == name)
            .where(table.c.color == color)
            .order_by(table.c.id)
            .limit(1)
        )
        return self.session.execute(stmt).scalars().first()

    def find_like(self, name_fragment: str, color_fragment: str) -> CanonicalStockRecord | None:
        table = stock_record_table
        stmt = (
            select(CanonicalStockRecord)
            .where(self._contains(table.c.name, name_fragment))
            .where(self._contains(table.c.color, color_fragment))
            .order_by(table.c.id)
            .limit(1)
        )
        return self.session.execute(stmt).scalars().first()

    def find_by_link(
        self,
        channel_product_id: str,
        *,
        color: str | None = None,
    ) -> CanonicalStockRecord | None:
        table = stock_record_table
        stmt = select(CanonicalStockRecord).where(table.c.channel_product_id == channel_product_id)
        if color is not None:
            stmt = stmt.where(table.c.color == color)
        stmt = stmt.order_by(table.c.id).limit(1)
        return self.session.execute(stmt).scalars().first()

    def list_all(self) -> list[CanonicalStockRecord]:
        stmt = select(CanonicalStockRecord).order_by(stock_record_table.c.id)
        return list(self.session.execute(stmt).scalars())

    def _contains(self, column: Column[str], fragment: str) -> ColumnElement[bool]:
        # LIKE is case-insensitive on SQLite; substring position functions are not.
        if self.session.get_bind().dialect.name == "postgresql":
            return func.strpos(column, fragment) > 0
        return func.instr(column, fragment) > 0


class SqlAlchemyListingMappingRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, source_product_id: str, source_option: str) -> SecondaryListingMapping | None:
        table = listing_mapping_table
        stmt = (
            select(SecondaryListingMapping)
            .where(table.c.source_product_id == source_product_id)
            .where(table.c.source_option == source_option)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def upsert(self, mapping: SecondaryListingMapping) -> SecondaryListingMapping:
        existing = self.get(mapping.source_product_id, mapping.source_option)
        if existing is None:
            self.session.add(mapping)
            return mapping
        existing.source_product_name = mapping.source_product_name or existing.source_product_name
        existing.secondary_listing_id = mapping.secondary_listing_id
        existing.secondary_listing_name = mapping.secondary_listing_name
        existing.status = mapping.status
        existing.updated_at = mapping.updated_at
        return existing

    def delete(self, source_product_id: str, source_option: str) -> bool:
        existing = self.get(source_product_id, source_option)
        if existing is None:
            return False
        self.session.delete(existing)
        return True


class SqlAlchemySalesRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add_if_absent(self, order: SalesOrder) -> bool:
        stmt = select(exists().where(sales_order_table.c.order_line_id == order.order_line_id))
        if self.session.execute(stmt).scalar():
            return False
        self.session.add(order)
        return True
