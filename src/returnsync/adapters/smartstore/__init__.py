"""Naver Commerce (Smartstore) adapter."""

from __future__ import annotations

from typing import TYPE_CHECKING

from returnsync.domain.model import Channel

from .client import SmartstoreClient, sign_client_secret
from .storefront import SmartstoreStorefront

if TYPE_CHECKING:
    from collections.abc import Callable

    from returnsync.adapters.http_resilience import ResilientClient
    from returnsync.config.http_resilience import ResilienceConfig
    from returnsync.config.smartstore import SmartstoreConfig

_CHANNELS = {"A": Channel.STORE_A, "B": Channel.STORE_B}


def build_smartstore_storefront(
    config: SmartstoreConfig,
    *,
    client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
) -> SmartstoreStorefront:
    client = SmartstoreClient(config=config, client_factory=client_factory)
    return SmartstoreStorefront(client, channel=_CHANNELS[config.store])


__all__ = [
    "SmartstoreClient",
    "SmartstoreStorefront",
    "build_smartstore_storefront",
    "sign_client_secret",
]
