"""SQLAlchemy mapping metadata for the returnsync domain model."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from enum import Enum as PyEnum
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    Enum,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    orm,
)
from sqlalchemy.orm import configure_mappers

from returnsync.domain.model import (
    AuditEntry,
    AuditEntryType,
    AuditStatus,
    CanonicalStockRecord,
    Channel,
    MatchStatus,
    SalesOrder,
    SecondaryListingMapping,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def _enum_column[TEnum: PyEnum](enum_cls: type[TEnum], length: int = 32) -> Enum:
    return Enum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [member.value for member in members],
    )


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

sync_config_table = Table(
    "sync_config",
    mapper_registry.metadata,
    Column("key", String(100), primary_key=True),
    Column("value", Text, nullable=True),
    Column("updated_at", UTCDateTime(), nullable=False),
)

stock_record_table = Table(
    "stock_record",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("color", String(255), nullable=False),
    Column("size", String(100), nullable=True),
    Column("quantity", Integer, nullable=False, default=0),
    Column("brand", String(10), nullable=False, default=""),
    Column("channel_product_id", String(64), nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=True),
    Column("restocked_at", UTCDateTime(), nullable=True),
    Index("ix_stock_record_name_color", "name", "color"),
    Index("ix_stock_record_channel_product_id", "channel_product_id"),
)

listing_mapping_table = Table(
    "listing_mapping",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("source_product_id", String(64), nullable=False),
    Column("source_option", String(255), nullable=False, default=""),
    Column("source_product_name", String(500), nullable=False, default=""),
    Column("secondary_listing_id", String(64), nullable=True),
    Column("secondary_listing_name", String(500), nullable=True),
    Column("status", _enum_column(MatchStatus), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
    UniqueConstraint("source_product_id", "source_option", name="uq_listing_mapping_source"),
)

audit_entry_table = Table(
    "audit_entry",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("run_id", String(64), nullable=False, index=True),
    Column("entry_type", _enum_column(AuditEntryType), nullable=False),
    Column("source_channel", _enum_column(Channel, length=4), nullable=False),
    Column("destination_channel", _enum_column(Channel, length=4), nullable=True),
    Column("order_line_id", String(100), nullable=True, index=True),
    Column("channel_product_id", String(64), nullable=True),
    Column("product_name", String(500), nullable=True),
    Column("option_name", String(255), nullable=True),
    Column("quantity", Integer, nullable=False, default=0),
    Column("status", _enum_column(AuditStatus, length=16), nullable=False),
    Column("message", Text, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False, index=True),
)

sales_order_table = Table(
    "sales_order",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("channel", _enum_column(Channel, length=4), nullable=False),
    Column("order_line_id", String(100), nullable=False, unique=True),
    Column("ordered_at", UTCDateTime(), nullable=False, index=True),
    Column("product_name", String(500), nullable=False, default=""),
    Column("option_name", String(255), nullable=True),
    Column("quantity", Integer, nullable=False, default=1),
    Column("unit_price", Integer, nullable=False, default=0),
    Column("total_amount", Integer, nullable=False, default=0),
    Column("status", String(50), nullable=False, default=""),
    Column("channel_product_id", String(64), nullable=True),
    Column("fetched_at", UTCDateTime(), nullable=False),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(CanonicalStockRecord, stock_record_table)
    mapper_registry.map_imperatively(SecondaryListingMapping, listing_mapping_table)
    mapper_registry.map_imperatively(AuditEntry, audit_entry_table)
    mapper_registry.map_imperatively(SalesOrder, sales_order_table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
