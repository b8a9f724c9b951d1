"""Zigzag Open API adapter."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .client import ZigzagClient, build_authorization
from .marketplace import ZigzagMarketplace

if TYPE_CHECKING:
    from collections.abc import Callable

    from returnsync.adapters.http_resilience import ResilientClient
    from returnsync.config.http_resilience import ResilienceConfig
    from returnsync.config.zigzag import ZigzagConfig


def build_zigzag_marketplace(
    config: ZigzagConfig,
    *,
    client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
) -> ZigzagMarketplace:
    return ZigzagMarketplace(ZigzagClient(config=config, client_factory=client_factory))


__all__ = ["ZigzagClient", "ZigzagMarketplace", "build_authorization", "build_zigzag_marketplace"]
