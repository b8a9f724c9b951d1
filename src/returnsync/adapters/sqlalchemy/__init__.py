"""SQLAlchemy adapter package for returnsync."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyAuditRepository,
    SqlAlchemyConfigRepository,
    SqlAlchemyListingMappingRepository,
    SqlAlchemySalesRepository,
    SqlAlchemyStockRepository,
)
from .unit_of_work import SqlAlchemyUnitOfWork, StartupError, shutdown, startup

__all__ = [
    "SqlAlchemyAuditRepository",
    "SqlAlchemyConfigRepository",
    "SqlAlchemyListingMappingRepository",
    "SqlAlchemySalesRepository",
    "SqlAlchemyStockRepository",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "create_all_tables",
    "mapper_registry",
    "start_mappers",
    "shutdown",
    "startup",
]
