"""
Settle Expired Events Use Case

For every event whose end_time has passed:
1. Aggregate approved revenue (direct vs. via tickets, the larger figure wins)
2. Insert the payout row unless one exists (payout.event_id is unique: the settled marker)
3. Delete the event with its ticket types, cart lines, tickets and purchases
4. Tell the organizer

Steps 2 and 3 share one transaction per event. Events are independent: one
failing is recorded in the report and the sweep moves on. Expired events are
paged by (end_time, id) so failures left in place never hide later events.
"""

from datetime import datetime, timezone
from typing import Callable, Optional, Tuple

from box_office.platform.database.unit_of_work import AbstractUnitOfWork
from box_office.platform.exception.storage_error import storage_error_as_internal
from box_office.platform.logging.loguru_io import Logger
from box_office.service.marketplace.app.dto.settlement_result import SweepReport
from box_office.service.marketplace.app.interface.i_notification_sink import INotificationSink
from box_office.service.marketplace.domain.entity.event_entity import Event
from box_office.service.marketplace.domain.entity.payout_entity import Payout
from box_office.service.marketplace.domain.enum.notification_type import NotificationType
from box_office.service.marketplace.domain.value_object.notification_message import (
    NotificationMessage,
)


class SettleExpiredEventsUseCase:
    def __init__(
        self,
        *,
        uow_factory: Callable[[], AbstractUnitOfWork],
        notification_sink: INotificationSink,
        currency: str,
        batch_size: int,
    ) -> None:
        self.uow_factory = uow_factory
        self.notification_sink = notification_sink
        self.currency = currency
        self.batch_size = batch_size

    @Logger.io
    @storage_error_as_internal
    async def sweep(self, *, now: Optional[datetime] = None) -> SweepReport:
        now = now or datetime.now(timezone.utc)
        report = SweepReport()
        cursor: Optional[Tuple[datetime, int]] = None
        while True:
            async with self.uow_factory() as uow:
                page = await uow.event_repo.list_expired(
                    now=now, limit=self.batch_size, after=cursor
                )

            for event in page:
                await self._process(event=event, report=report)

            if len(page) < self.batch_size:
                break
            cursor = (page[-1].end_time, page[-1].id)  # type: ignore[assignment]

        if report.processed_count:
            Logger.base.info(
                f'🧾 [SETTLEMENT] Swept {report.processed_count} events: '
                f'settled={len(report.settled_event_ids)} failed={len(report.failed)}'
            )
        return report

    async def _process(self, *, event: Event, report: SweepReport) -> None:
        try:
            payout = await self._settle(event=event)
        except Exception as e:
            Logger.base.exception(f'💥 [SETTLEMENT] Event {event.id} failed: {e}')
            report.failed[event.id] = str(e)  # type: ignore[index]
            return

        report.deleted_event_ids.append(event.id)  # type: ignore[arg-type]
        if payout is not None:
            report.settled_event_ids.append(event.id)  # type: ignore[arg-type]
            await self._notify_organizer(event=event, payout=payout)

    async def _settle(self, *, event: Event) -> Optional[Payout]:
        """Returns the payout created by this run, or None if the event was already settled."""
        assert event.id is not None
        created: Optional[Payout] = None
        async with self.uow_factory() as uow:
            existing = await uow.settlement_repo.get_payout(event_id=event.id)
            if existing is None:
                revenue = await uow.settlement_repo.get_event_revenue(event_id=event.id)
                created = await uow.settlement_repo.create_payout(
                    payout=Payout(
                        event_id=event.id,
                        organizer_id=event.organizer_id,
                        amount_cents=revenue.amount_cents,
                        currency=self.currency,
                        approved_payment_count=revenue.approved_payment_count,
                        strategy=revenue.strategy,
                    )
                )
            else:
                Logger.base.info(f'🧾 [SETTLEMENT] Event {event.id} already paid out')

            await uow.event_repo.delete_cascade(event_id=event.id)
            await uow.commit()
        return created

    async def _notify_organizer(self, *, event: Event, payout: Payout) -> None:
        await self.notification_sink.notify(
            message=NotificationMessage(
                user_id=event.organizer_id,
                type=NotificationType.PAYOUT_ISSUED,
                message=(
                    f'Payout for "{event.title}": {payout.amount_cents} {payout.currency} cents '
                    f'from {payout.approved_payment_count} payments'
                ),
                event_id=event.id,
            )
        )
