from __future__ import annotations

import asyncio
import logging

import httpx
import pytest

from returnsync.adapters.notifications import LogNotifier, WebhookNotifier, build_notifier
from returnsync.config.http_resilience import ResilienceConfig
from returnsync.config.notifications import NotificationConfig, get_notification_config
from returnsync.domain.ports import ChannelError
from tests.helpers.http import make_client_factory, request_json

WEBHOOK = "https://hooks.example.test/returnsync"


def _config(url: str | None = WEBHOOK) -> NotificationConfig:
    return NotificationConfig(webhook_url=url, resilience=ResilienceConfig(name="notifications"))


def test_webhook_posts_title_and_body() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204)

    notifier = WebhookNotifier(config=_config(), client_factory=make_client_factory(handler))

    async def run() -> None:
        await notifier.notify("Stock restored from return", "hm 라쿤 울 니트 +1")
        await notifier.aclose()

    asyncio.run(run())

    (request,) = seen
    assert str(request.url) == WEBHOOK
    assert request_json(request) == {
        "title": "Stock restored from return",
        "body": "hm 라쿤 울 니트 +1",
        "text": "Stock restored from return\nhm 라쿤 울 니트 +1",
    }


def test_webhook_failure_raises_channel_error() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="down")

    notifier = WebhookNotifier(config=_config(), client_factory=make_client_factory(handler))

    with pytest.raises(ChannelError):
        asyncio.run(notifier.notify("title", "body"))


def test_webhook_requires_url() -> None:
    with pytest.raises(ValueError, match="webhook URL"):
        WebhookNotifier(config=_config(None))


def test_build_notifier_falls_back_to_log(caplog: pytest.LogCaptureFixture) -> None:
    notifier = build_notifier(_config(None))

    assert isinstance(notifier, LogNotifier)
    with caplog.at_level(logging.INFO, logger="returnsync.adapters.notifications"):
        asyncio.run(notifier.notify("Cycle failed", "collecting returns"))
    assert "Cycle failed: collecting returns" in caplog.text


def test_build_notifier_uses_webhook_when_configured() -> None:
    assert isinstance(build_notifier(_config()), WebhookNotifier)


def test_notification_config_ignores_blank_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NOTIFY_WEBHOOK_URL", "   ")
    assert get_notification_config().webhook_url is None

    monkeypatch.setenv("NOTIFY_WEBHOOK_URL", f" {WEBHOOK} ")
    assert get_notification_config().webhook_url == WEBHOOK
