"""Coupang Open API adapter."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .client import CoupangClient, build_authorization
from .marketplace import CoupangMarketplace

if TYPE_CHECKING:
    from collections.abc import Callable

    from returnsync.adapters.http_resilience import ResilientClient
    from returnsync.config.coupang import CoupangConfig
    from returnsync.config.http_resilience import ResilienceConfig


def build_coupang_marketplace(
    config: CoupangConfig,
    *,
    client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
) -> CoupangMarketplace:
    return CoupangMarketplace(CoupangClient(config=config, client_factory=client_factory))


__all__ = ["CoupangClient", "CoupangMarketplace", "build_authorization", "build_coupang_marketplace"]
