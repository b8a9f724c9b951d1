"""Port for outbound, fire-and-forget notifications."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Notifier(Protocol):
    async def notify(self, title: str, body: str) -> None: ...
