"""Coupang channel adapter: sales channel plus completed-return detection."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from returnsync.domain.model import Channel
from returnsync.domain.ports import ChannelError

from .translator import translate_order_item, translate_return_item

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence
    from datetime import datetime

    from returnsync.domain.model import OrderLineDetail

    from .client import CoupangClient
    from .schema import OrderSheetPage, ReturnRequestPage

log = getLogger(__name__)

ORDER_STATUSES = ("ACCEPT", "INSTRUCT", "DEPARTURE", "DELIVERING", "FINAL_DELIVERY", "NONE_TRACKING")
RETURN_STATUSES = ("UC", "CC", "PR")
COLLECTED_RETURN_STATUS = "CC"
COMPLETED_RECEIPT_STATUS = "RETURNS_COMPLETED"
MAX_PAGES = 100


class CoupangMarketplace:
    """Order sheets have no per-line lookup, so listed lines are kept for detail reads."""

    def __init__(
        self,
        client: CoupangClient,
        *,
        page_pause_seconds: float = 0.15,
        status_pause_seconds: float = 0.1,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._page_pause = page_pause_seconds
        self._status_pause = status_pause_seconds
        self._sleep = sleep
        self._lines: dict[str, OrderLineDetail] = {}

    @property
    def code(self) -> Channel:
        return Channel.COUPANG

    async def aclose(self) -> None:
        await self._client.aclose()

    async def list_order_status_changes(self, start: datetime, end: datetime) -> list[str]:
        found: dict[str, None] = {}
        for status in ORDER_STATUSES:
            try:
                pages = await self._collect_pages(self._client.order_sheet_page, start, end, status)
            except ChannelError as exc:
                # The endpoint errors on statuses without orders.
                log.info("Coupang %s order sheets unavailable: %s", status, exc)
                continue
            for page in pages:
                for sheet in page.data:
                    for item in sheet.order_items:
                        line = translate_order_item(sheet, item)
                        self._lines[line.order_line_id] = line
                        found.setdefault(line.order_line_id, None)
            await self._sleep(self._status_pause)
        return list(found)

    async def list_completed_returns(self, start: datetime, end: datetime) -> list[str]:
        """Return lines that are completed: receipt completed, or already collected (``CC``).

        The same receipt shows up under several status queries, so lines are
        de-duplicated by receipt and vendor item.
        """

        seen: set[tuple[str, str]] = set()
        found: dict[str, None] = {}
        for status in RETURN_STATUSES:
            try:
                pages = await self._collect_pages(self._client.return_request_page, start, end, status)
            except ChannelError as exc:
                log.info("Coupang %s return requests unavailable: %s", status, exc)
                continue
            for page in pages:
                for request in page.data:
                    receipt_status = request.receipt_status or status
                    completed = (
                        receipt_status == COMPLETED_RECEIPT_STATUS or status == COLLECTED_RETURN_STATUS
                    )
                    if not completed:
                        continue
                    for item in request.return_items:
                        key = (request.receipt_id, item.vendor_item_id)
                        if key in seen:
                            continue
                        seen.add(key)
                        line = translate_return_item(request, item, status=receipt_status)
                        self._lines[line.order_line_id] = line
                        found.setdefault(line.order_line_id, None)
            await self._sleep(self._status_pause)
        return list(found)

    async def get_order_line_detail(self, order_line_ids: Sequence[str]) -> list[OrderLineDetail]:
        details: list[OrderLineDetail] = []
        for order_line_id in order_line_ids:
            line = self._lines.get(order_line_id)
            if line is None:
                log.warning("Coupang order line %s was not listed in this session", order_line_id)
                continue
            details.append(line)
        return details

    async def _collect_pages[PageT: (OrderSheetPage, ReturnRequestPage)](
        self,
        fetch: Callable[..., Awaitable[PageT]],
        start: datetime,
        end: datetime,
        status: str,
    ) -> list[PageT]:
        pages: list[PageT] = []
        next_token: str | None = None
        for _ in range(MAX_PAGES):
            page = await fetch(start, end, status=status, next_token=next_token)
            pages.append(page)
            next_token = page.next_token
            if not next_token:
                break
            await self._sleep(self._page_pause)
        return pages
