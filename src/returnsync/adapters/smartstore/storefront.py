"""Smartstore channel adapter: return source, sales channel and secondary storefront."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from returnsync.domain.model import StockChange
from returnsync.domain.ports import ChannelError

from .listing_copy import build_listing_copy, build_stock_update
from .translator import translate_listing, translate_order_line

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable, Sequence
    from datetime import datetime

    from returnsync.domain.model import (
        Channel,
        ListingCopySettings,
        ListingDetail,
        ListingDraft,
        OrderLineDetail,
    )

    from .client import SmartstoreClient
    from .schema import LastChangedStatus

log = getLogger(__name__)

RETURN_CHANGE_TYPES = ("CLAIM_REQUESTED", "COLLECT_DONE", "CLAIM_COMPLETED")


def unique_order_ids(statuses: Iterable[LastChangedStatus]) -> list[str]:
    seen: dict[str, None] = {}
    for status in statuses:
        seen.setdefault(status.product_order_id, None)
    return list(seen)


class SmartstoreStorefront:
    def __init__(
        self,
        client: SmartstoreClient,
        *,
        channel: Channel,
        query_pause_seconds: float = 0.3,
        verify_delay_seconds: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._channel = channel
        self._query_pause = query_pause_seconds
        self._verify_delay = verify_delay_seconds
        self._sleep = sleep

    @property
    def code(self) -> Channel:
        return self._channel

    async def aclose(self) -> None:
        await self._client.aclose()

    async def list_completed_returns(self, start: datetime, end: datetime) -> list[str]:
        """Order lines whose return completed in the window.

        Completed returns surface under different change types depending on how
        the claim progressed, so all of them are queried and merged. A failing
        change type is logged and skipped.
        """

        statuses: list[LastChangedStatus] = []
        for change_type in RETURN_CHANGE_TYPES:
            try:
                statuses.extend(
                    await self._client.last_changed_statuses(start, end, change_type=change_type)
                )
            except ChannelError as exc:
                log.warning("%s: %s query failed, ignoring: %s", self._channel.value, change_type, exc)
            await self._sleep(self._query_pause)

        returned = [status for status in statuses if status.is_completed_return]
        log.info(
            "%s: %s claim changes, %s completed returns",
            self._channel.value,
            len(statuses),
            len(returned),
        )
        return unique_order_ids(returned)

    async def list_order_status_changes(self, start: datetime, end: datetime) -> list[str]:
        return unique_order_ids(await self._client.last_changed_statuses(start, end))

    async def get_order_line_detail(self, order_line_ids: Sequence[str]) -> list[OrderLineDetail]:
        details = await self._client.query_product_orders(order_line_ids)
        return [translate_order_line(detail, channel=self._channel) for detail in details]

    async def get_listing(
        self,
        listing_id: str,
        *,
        origin_product_id: str | None = None,
    ) -> ListingDetail:
        try:
            payload = await self._client.get_channel_product(listing_id)
        except ChannelError:
            if not origin_product_id:
                raise
            log.info(
                "%s: channel product %s unavailable, reading origin product %s",
                self._channel.value,
                listing_id,
                origin_product_id,
            )
            payload = await self._client.get_origin_product(origin_product_id)
        return translate_listing(payload, listing_id=listing_id)

    async def create_listing(self, draft: ListingDraft) -> str:
        created = await self._client.create_product(draft.payload)
        listing_id = created.listing_id
        if not listing_id:
            raise ChannelError(
                f"{self._channel.value}: product created without a listing id",
                channel=self._client.name,
            )
        await self._sleep(self._verify_delay)
        await self._correct_initial_stock(listing_id, draft.stock_quantity)
        return listing_id

    async def _correct_initial_stock(self, listing_id: str, expected: int) -> None:
        # Option stock can override the requested total on creation.
        try:
            payload = await self._client.get_channel_product(listing_id)
            current = translate_listing(payload, listing_id=listing_id).stock_quantity
            if current != expected:
                log.info(
                    "%s: correcting stock of new listing %s from %s to %s",
                    self._channel.value,
                    listing_id,
                    current,
                    expected,
                )
                await self._client.update_channel_product(
                    listing_id, build_stock_update(payload, expected)
                )
        except ChannelError as exc:
            log.warning("%s: could not verify stock of listing %s: %s", self._channel.value, listing_id, exc)

    async def increase_listing_stock(self, listing_id: str, quantity: int) -> StockChange:
        payload = await self._client.get_channel_product(listing_id)
        before = translate_listing(payload, listing_id=listing_id).stock_quantity
        after = before + quantity
        await self._client.update_channel_product(listing_id, build_stock_update(payload, after))
        return StockChange(before=before, after=after)

    def build_listing_copy(
        self,
        source: ListingDetail,
        *,
        quantity: int,
        option_name: str | None,
        settings: ListingCopySettings,
    ) -> ListingDraft:
        return build_listing_copy(
            source,
            quantity=quantity,
            option_name=option_name,
            settings=settings,
        )
