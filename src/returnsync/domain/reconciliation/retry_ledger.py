"""Order lines that failed in a previous cycle and are retried on every later one."""

from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING, cast

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

log = getLogger(__name__)


class RetryLedger:
    """Insertion-ordered set of order line ids, stored as one JSON array."""

    def __init__(self, order_line_ids: Iterable[str] = ()) -> None:
        self._ids: dict[str, None] = dict.fromkeys(i for i in order_line_ids if i)

    @classmethod
    def loads(cls, raw: str | None) -> RetryLedger:
        if not raw:
            return cls()
        try:
            loaded = json.loads(raw)
        except json.JSONDecodeError:
            log.warning("Discarding unreadable retry ledger value: %r", raw[:200])
            return cls()
        if not isinstance(loaded, list):
            log.warning("Discarding retry ledger that is not a list: %r", raw[:200])
            return cls()
        items = cast("list[object]", loaded)
        return cls(str(item) for item in items if item is not None)

    def dumps(self) -> str:
        return json.dumps(list(self._ids), ensure_ascii=False)

    def add(self, order_line_id: str) -> bool:
        """Add an id; returns whether the ledger changed."""

        if not order_line_id or order_line_id in self._ids:
            return False
        self._ids[order_line_id] = None
        return True

    def discard(self, order_line_id: str) -> bool:
        """Remove an id; returns whether the ledger changed."""

        if order_line_id not in self._ids:
            return False
        del self._ids[order_line_id]
        return True

    def clear(self) -> None:
        self._ids.clear()

    def __contains__(self, order_line_id: object) -> bool:
        return order_line_id in self._ids

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._ids))

    def __len__(self) -> int:
        return len(self._ids)

    def __repr__(self) -> str:
        return f"RetryLedger({list(self._ids)!r})"
