"""Tiered resolution of a returned line item to a canonical stock record.

Responsibilities of this stage:
- guard against applying the same return twice
- find the stock record a return belongs to: direct link, exact text, fuzzy text
- refuse to overwrite quantities edited out-of-band since the last watermark
- describe a new record when nothing matches

Out of scope for this stage:
- mutating records or persisting links (the engine applies decisions)
- commit/flush
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from returnsync.domain.model import AuditEntryType, AuditStatus

from .contracts import MatchAction, MatchDecision, MatchType, SkipReason, StockDraft
from .naming import (
    brand_for,
    display_name,
    normalize_product_name,
    option_as_color,
    search_keyword,
)

if TYPE_CHECKING:
    from datetime import datetime

    from returnsync.domain.model import CanonicalStockRecord, ReturnEvent
    from returnsync.domain.ports import AuditRepository, StockRepository

log = getLogger(__name__)

APPLIED_ENTRY_TYPES = frozenset({AuditEntryType.STOCK_UPDATED})


class CanonicalMatcher:
    """Resolve returns against the stock repository of one unit of work."""

    def __init__(self, stock: StockRepository, audit: AuditRepository) -> None:
        self._stock = stock
        self._audit = audit

    def resolve(self, event: ReturnEvent, watermark: datetime | None) -> MatchDecision:
        if self._audit.has_entry(
            event.order_line_id,
            entry_types=APPLIED_ENTRY_TYPES,
            status=AuditStatus.SUCCESS,
        ):
            log.debug("Order line %s already applied to stock", event.order_line_id)
            return MatchDecision.skip(SkipReason.ALREADY_PROCESSED)

        match = self._find(event)
        if match is None:
            return MatchDecision(action=MatchAction.CREATE, draft=self._draft(event))

        record, match_type = match
        pending_link = self._pending_link(record, event, match_type)
        if record.modified_since(watermark):
            log.info(
                "Stock record %s changed at %s after watermark %s, leaving quantity alone",
                record.id,
                record.updated_at,
                watermark,
            )
            return MatchDecision.skip(
                SkipReason.MANUAL_UPDATE_DETECTED,
                record=record,
                match_type=match_type,
                pending_link=pending_link,
            )
        return MatchDecision(
            action=MatchAction.UPDATE,
            record=record,
            match_type=match_type,
            new_quantity=record.quantity + event.quantity,
            pending_link=pending_link,
        )

    def _find(self, event: ReturnEvent) -> tuple[CanonicalStockRecord, MatchType] | None:
        color = option_as_color(event.option_name)

        if event.channel_product_id:
            record = self._stock.find_by_link(event.channel_product_id, color=color)
            if record is None:
                record = self._stock.find_by_link(event.channel_product_id)
            if record is not None:
                return record, MatchType.DIRECT

        name = normalize_product_name(event.product_name)
        if name:
            record = self._stock.find_exact(name, color)
            if record is not None:
                return record, MatchType.EXACT

        option = (event.option_name or "").strip()
        keyword = search_keyword(name)
        if keyword and option:
            # First hit by id wins; there is no ranking between several candidates.
            record = self._stock.find_like(keyword, option)
            if record is not None:
                return record, MatchType.FUZZY

        return None

    @staticmethod
    def _pending_link(
        record: CanonicalStockRecord,
        event: ReturnEvent,
        match_type: MatchType,
    ) -> str | None:
        if match_type is MatchType.DIRECT or not event.channel_product_id:
            return None
        if record.channel_product_id:
            return None
        return event.channel_product_id

    @staticmethod
    def _draft(event: ReturnEvent) -> StockDraft:
        name = display_name(event.product_name)
        return StockDraft(
            name=name,
            color=option_as_color(event.option_name),
            brand=brand_for(name),
            quantity=event.quantity,
            channel_product_id=event.channel_product_id,
        )
