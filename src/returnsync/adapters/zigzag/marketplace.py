"""Zigzag channel adapter: sales channel plus completed-return detection."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from returnsync.domain.model import Channel

from .client import PAGE_SIZE
from .translator import to_ymd, translate_order_item, translate_returned_item

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence
    from datetime import datetime

    from returnsync.domain.model import OrderLineDetail

    from .client import ZigzagClient
    from .schema import OrderItem, OrderItemList

log = getLogger(__name__)

COMPLETED_RETURN_STATUSES = frozenset({"RETURN_COMPLETED", "COMPLETED", "RETURNED"})
MAX_PAGES = 100


def is_completed_return(item: OrderItem) -> bool:
    for request in item.active_request_list:
        if (request.type or "RETURN").upper() != "RETURN":
            continue
        if (request.status or "").upper() in COMPLETED_RETURN_STATUSES:
            return True
    return item.status.upper() in COMPLETED_RETURN_STATUSES


class ZigzagMarketplace:
    def __init__(
        self,
        client: ZigzagClient,
        *,
        page_pause_seconds: float = 0.15,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._page_pause = page_pause_seconds
        self._sleep = sleep
        self._lines: dict[str, OrderLineDetail] = {}

    @property
    def code(self) -> Channel:
        return Channel.ZIGZAG

    async def aclose(self) -> None:
        await self._client.aclose()

    async def list_order_status_changes(self, start: datetime, end: datetime) -> list[str]:
        found: dict[str, None] = {}
        for item in await self._paged(self._client.order_items, start, end):
            line = translate_order_item(item)
            self._lines[line.order_line_id] = line
            found.setdefault(line.order_line_id, None)
        return list(found)

    async def list_completed_returns(self, start: datetime, end: datetime) -> list[str]:
        found: dict[str, None] = {}
        for item in await self._paged(self._client.returned_items, start, end):
            if not is_completed_return(item):
                continue
            line = translate_returned_item(item)
            self._lines[line.order_line_id] = line
            found.setdefault(line.order_line_id, None)
        return list(found)

    async def get_order_line_detail(self, order_line_ids: Sequence[str]) -> list[OrderLineDetail]:
        details: list[OrderLineDetail] = []
        for order_line_id in order_line_ids:
            line = self._lines.get(order_line_id)
            if line is None:
                log.warning("Zigzag order line %s was not listed in this session", order_line_id)
                continue
            details.append(line)
        return details

    async def _paged(
        self,
        fetch: Callable[..., Awaitable[OrderItemList]],
        start: datetime,
        end: datetime,
    ) -> list[OrderItem]:
        items: list[OrderItem] = []
        skip = 0
        for _ in range(MAX_PAGES):
            page = await fetch(ymd_from=to_ymd(start), ymd_to=to_ymd(end), skip=skip)
            if not page.item_list:
                break
            items.extend(page.item_list)
            skip += PAGE_SIZE
            if skip >= page.total_count:
                break
            await self._sleep(self._page_pause)
        return items
