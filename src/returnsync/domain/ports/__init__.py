"""Domain port definitions for adapters."""

from __future__ import annotations

from .channels import (
    ChannelError,
    ListingNotFoundError,
    OrderLineSource,
    ReturnSourceChannel,
    SalesChannel,
    SecondaryStorefront,
)
from .notifications import Notifier
from .persistence import (
    AuditRepository,
    ConfigRepository,
    ListingMappingRepository,
    SalesRepository,
    StockRepository,
)
from .unit_of_work import (
    ReconciliationRepositories,
    ReconciliationUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "AuditRepository",
    "ChannelError",
    "ConfigRepository",
    "ListingMappingRepository",
    "ListingNotFoundError",
    "Notifier",
    "OrderLineSource",
    "ReconciliationRepositories",
    "ReconciliationUnitOfWork",
    "RepositoryCollection",
    "ReturnSourceChannel",
    "SalesChannel",
    "SalesRepository",
    "SecondaryStorefront",
    "StockRepository",
    "UnitOfWork",
]
