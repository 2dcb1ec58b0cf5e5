from datetime import datetime, timezone
from typing import Callable

from box_office.platform.database.unit_of_work import AbstractUnitOfWork
from box_office.platform.exception.exceptions import ConflictError, ForbiddenError, NotFoundError
from box_office.platform.exception.storage_error import storage_error_as_internal
from box_office.platform.logging.loguru_io import Logger
from box_office.service.marketplace.app.dto.settlement_result import PayoutSummary


class GetPayoutSummaryUseCase:
    """Read-only preview of what settlement would pay the organizer"""

    def __init__(self, *, uow_factory: Callable[[], AbstractUnitOfWork], currency: str) -> None:
        self.uow_factory = uow_factory
        self.currency = currency

    @Logger.io
    @storage_error_as_internal
    async def summary(self, *, organizer_id: int, event_id: int) -> PayoutSummary:
        async with self.uow_factory() as uow:
            event = await uow.event_repo.get_by_id(event_id=event_id)
            if not event:
                raise NotFoundError('Event not found')
            if not event.is_owned_by(organizer_id):
                raise ForbiddenError('Only the organizer can view the payout')
            if not event.has_ended(datetime.now(timezone.utc)):
                raise ConflictError('Event has not ended yet')

            revenue = await uow.settlement_repo.get_event_revenue(event_id=event_id)

        if revenue.approved_payment_count == 0:
            raise ConflictError('No approved payments for this event')

        return PayoutSummary(
            event_id=event_id,
            organizer_id=organizer_id,
            amount_cents=revenue.amount_cents,
            currency=self.currency,
            approved_payment_count=revenue.approved_payment_count,
            strategy=revenue.strategy,
            direct_cents=revenue.direct_cents,
            via_tickets_cents=revenue.via_tickets_cents,
        )
