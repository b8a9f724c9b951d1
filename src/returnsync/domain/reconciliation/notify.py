"""Best-effort delivery of operator notifications."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from returnsync.domain.ports import Notifier

log = getLogger(__name__)


async def notify_quietly(notifier: Notifier | None, title: str, body: str) -> None:
    """Send a notification; a failing notifier never fails the caller."""

    if notifier is None:
        return
    try:
        await notifier.notify(title, body)
    except Exception:  # noqa: BLE001 - notifications are advisory
        log.warning("Notification %r could not be delivered", title, exc_info=True)
