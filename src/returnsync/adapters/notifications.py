"""Notifier adapters: log-only and JSON webhook delivery."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from returnsync.adapters.http_resilience import ResilientClient, raise_for_channel_status

if TYPE_CHECKING:
    from collections.abc import Callable

    from returnsync.config.http_resilience import ResilienceConfig
    from returnsync.config.notifications import NotificationConfig

log = getLogger(__name__)


class LogNotifier:
    """Writes notifications to the log; used when no webhook is configured."""

    async def notify(self, title: str, body: str) -> None:
        log.info("%s: %s", title, body)


class WebhookNotifier:
    def __init__(
        self,
        *,
        config: NotificationConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        if not config.webhook_url:
            raise ValueError("WebhookNotifier requires a webhook URL")
        self._url = config.webhook_url
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient
        self._http: ResilientClient | None = None

    def _client(self) -> ResilientClient:
        if self._http is None:
            self._http = self._client_factory(self._resilience)
        return self._http

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def notify(self, title: str, body: str) -> None:
        payload = {"title": title, "body": body, "text": f"{title}\n{body}"}
        response = await self._client().post(self._url, json=payload)
        raise_for_channel_status(response, channel=self._resilience.name)


def build_notifier(
    config: NotificationConfig,
    *,
    client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
) -> LogNotifier | WebhookNotifier:
    if config.webhook_url:
        return WebhookNotifier(config=config, client_factory=client_factory)
    return LogNotifier()
