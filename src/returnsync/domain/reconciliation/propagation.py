"""Mirror a reconciled return onto the secondary storefront."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from returnsync.domain.model import (
    AuditEntry,
    AuditEntryType,
    AuditStatus,
    MatchStatus,
    SecondaryListingMapping,
)
from returnsync.domain.ports import ChannelError, ListingNotFoundError

from .errors import PropagationError
from .notify import notify_quietly

if TYPE_CHECKING:
    from collections.abc import Callable

    from returnsync.domain.model import ListingCopySettings, ReturnEvent
    from returnsync.domain.ports import (
        Notifier,
        ReconciliationUnitOfWork,
        ReturnSourceChannel,
        SecondaryStorefront,
    )
    from returnsync.domain.time_windows import Clock

log = getLogger(__name__)

PROPAGATED_ENTRY_TYPES = frozenset(
    {AuditEntryType.QUANTITY_INCREASED, AuditEntryType.LISTING_CREATED}
)


class SecondaryPropagator:
    """Increase the mapped secondary listing, or copy the source listing when there is none."""

    def __init__(
        self,
        *,
        primary: ReturnSourceChannel,
        secondary: SecondaryStorefront,
        unit_of_work_factory: Callable[[], ReconciliationUnitOfWork],
        clock: Clock,
        notifier: Notifier | None = None,
    ) -> None:
        self._primary = primary
        self._secondary = secondary
        self._uow_factory = unit_of_work_factory
        self._clock = clock
        self._notifier = notifier

    def already_propagated(self, event: ReturnEvent) -> bool:
        with self._uow_factory() as uow:
            return uow.repositories.audit.has_entry(
                event.order_line_id,
                entry_types=PROPAGATED_ENTRY_TYPES,
                status=AuditStatus.SUCCESS,
            )

    async def propagate(
        self,
        run_id: str,
        event: ReturnEvent,
        settings: ListingCopySettings,
    ) -> None:
        if not event.channel_product_id:
            raise PropagationError(
                f"Order line {event.order_line_id} carries no source product id"
            )

        mapping = self._load_mapping(event)
        if mapping is not None and mapping.is_usable:
            try:
                await self._increase(run_id, event, mapping)
            except ListingNotFoundError:
                log.info(
                    "Secondary listing %s for product %s is gone, copying again",
                    mapping.secondary_listing_id,
                    event.channel_product_id,
                )
                self._reset_mapping(event)
            else:
                return

        await self._copy_listing(run_id, event, settings)

    def _load_mapping(self, event: ReturnEvent) -> SecondaryListingMapping | None:
        if not event.channel_product_id:
            return None
        with self._uow_factory() as uow:
            return uow.repositories.mappings.get(event.channel_product_id, event.option_key)

    def _reset_mapping(self, event: ReturnEvent) -> None:
        if not event.channel_product_id:
            return
        with self._uow_factory() as uow:
            uow.repositories.mappings.delete(event.channel_product_id, event.option_key)
            uow.commit()

    async def _increase(
        self,
        run_id: str,
        event: ReturnEvent,
        mapping: SecondaryListingMapping,
    ) -> None:
        listing_id = mapping.secondary_listing_id
        if listing_id is None:  # pragma: no cover - guarded by is_usable
            raise PropagationError("Mapping has no secondary listing id")
        try:
            change = await self._secondary.increase_listing_stock(listing_id, event.quantity)
        except ListingNotFoundError:
            raise
        except ChannelError as exc:
            self._record(
                run_id,
                event,
                AuditEntryType.QUANTITY_INCREASED,
                AuditStatus.FAIL,
                f"listing {listing_id}: {exc}",
            )
            raise

        self._record(
            run_id,
            event,
            AuditEntryType.QUANTITY_INCREASED,
            AuditStatus.SUCCESS,
            f"listing {listing_id}: {change.before} -> {change.after} (+{event.quantity})",
        )
        log.info(
            "Secondary listing %s stock %s -> %s for order line %s",
            listing_id,
            change.before,
            change.after,
            event.order_line_id,
        )
        await notify_quietly(
            self._notifier,
            "Secondary stock increased",
            f"{mapping.secondary_listing_name or event.product_name} "
            f"({event.option_name or '-'}): {change.before} -> {change.after}",
        )

    async def _copy_listing(
        self,
        run_id: str,
        event: ReturnEvent,
        settings: ListingCopySettings,
    ) -> None:
        source_id = event.channel_product_id or ""
        try:
            source = await self._primary.get_listing(
                source_id,
                origin_product_id=event.origin_product_id,
            )
            draft = self._secondary.build_listing_copy(
                source,
                quantity=event.quantity,
                option_name=event.option_name,
                settings=settings,
            )
            listing_id = await self._secondary.create_listing(draft)
        except ChannelError as exc:
            self._record(
                run_id,
                event,
                AuditEntryType.LISTING_CREATED,
                AuditStatus.FAIL,
                f"copy of product {source_id} failed: {exc}",
            )
            raise

        with self._uow_factory() as uow:
            uow.repositories.mappings.upsert(
                SecondaryListingMapping(
                    source_product_id=source_id,
                    source_option=event.option_key,
                    source_product_name=event.product_name,
                    secondary_listing_id=listing_id,
                    secondary_listing_name=draft.name,
                    status=MatchStatus.MATCHED,
                    updated_at=self._clock(),
                )
            )
            uow.repositories.audit.append(
                self._entry(
                    run_id,
                    event,
                    AuditEntryType.LISTING_CREATED,
                    AuditStatus.SUCCESS,
                    f"created listing {listing_id} with stock {draft.stock_quantity}",
                )
            )
            uow.commit()

        log.info(
            "Created secondary listing %s from product %s for order line %s",
            listing_id,
            source_id,
            event.order_line_id,
        )
        await notify_quietly(
            self._notifier,
            "Secondary listing created",
            f"{draft.name} ({event.option_name or '-'}) x{event.quantity}",
        )

    def _record(
        self,
        run_id: str,
        event: ReturnEvent,
        entry_type: AuditEntryType,
        status: AuditStatus,
        message: str,
    ) -> None:
        with self._uow_factory() as uow:
            uow.repositories.audit.append(self._entry(run_id, event, entry_type, status, message))
            uow.commit()

    def _entry(
        self,
        run_id: str,
        event: ReturnEvent,
        entry_type: AuditEntryType,
        status: AuditStatus,
        message: str,
    ) -> AuditEntry:
        return AuditEntry(
            run_id=run_id,
            entry_type=entry_type,
            source_channel=event.channel,
            destination_channel=self._secondary.code,
            order_line_id=event.order_line_id,
            channel_product_id=event.channel_product_id,
            product_name=event.product_name,
            option_name=event.option_name,
            quantity=event.quantity,
            status=status,
            message=message,
            created_at=self._clock(),
        )
