from typing import Callable, Dict

from box_office.platform.database.unit_of_work import AbstractUnitOfWork
from box_office.platform.exception.exceptions import (
    CustomBaseError,
    ForbiddenError,
    NotFoundError,
)
from box_office.platform.exception.storage_error import storage_error_as_internal
from box_office.platform.logging.loguru_io import Logger
from box_office.service.marketplace.app.command.refund_payment_use_case import (
    RefundPaymentUseCase,
)
from box_office.service.marketplace.app.dto.cancel_event_result import CancelEventResult
from box_office.service.marketplace.app.interface.i_notification_sink import INotificationSink
from box_office.service.marketplace.domain.enum.notification_type import NotificationType
from box_office.service.marketplace.domain.value_object.notification_message import (
    NotificationMessage,
)


class CancelEventUseCase:
    """
    Organizer cancels an event: refund every approved payment, then delete it.

    Each refund stands alone; a failed one is logged, reported in the result and
    does not stop the others. A payment spanning several events is refunded only
    for its tickets of this event.
    """

    def __init__(
        self,
        *,
        uow_factory: Callable[[], AbstractUnitOfWork],
        refund_payment_use_case: RefundPaymentUseCase,
        notification_sink: INotificationSink,
    ) -> None:
        self.uow_factory = uow_factory
        self.refund_payment_use_case = refund_payment_use_case
        self.notification_sink = notification_sink

    @Logger.io
    @storage_error_as_internal
    async def cancel(self, *, organizer_id: int, event_id: int) -> CancelEventResult:
        async with self.uow_factory() as uow:
            event = await uow.event_repo.get_by_id(event_id=event_id)
            if not event:
                raise NotFoundError('Event not found')
            if not event.is_owned_by(organizer_id):
                raise ForbiddenError('Only the organizer can cancel this event')

            refund_amounts: Dict[int, int] = {}
            for payment in await uow.payment_repo.list_approved_for_event(event_id=event_id):
                assert payment.id is not None
                if payment.event_id == event_id:
                    refund_amounts[payment.id] = payment.refundable_cents
                    continue
                tickets = await uow.ticket_repo.list_by_payment(payment_id=payment.id)
                share = sum(t.price_cents for t in tickets if t.event_id == event_id)
                refund_amounts[payment.id] = min(share, payment.refundable_cents)

        result = CancelEventResult(event_id=event_id)
        for payment_id, amount in refund_amounts.items():
            if amount <= 0:
                continue
            try:
                await self.refund_payment_use_case.refund(
                    payment_id=payment_id,
                    amount_cents=amount,
                    idempotency_key=f'event-{event_id}-cancel-{payment_id}',
                    message=(
                        f'Event "{event.title}" was cancelled. '
                        f'Payment {payment_id} was refunded.'
                    ),
                )
                result.refunded_payment_ids.append(payment_id)
            except CustomBaseError as e:
                Logger.base.warning(
                    f'⚠️ [CANCEL] Refund of payment {payment_id} for event {event_id} failed: '
                    f'{e.message}'
                )
                result.failed_payment_ids.append(payment_id)

        async with self.uow_factory() as uow:
            await uow.event_repo.delete_cascade(event_id=event_id)
            await uow.commit()

        await self.notification_sink.notify(
            message=NotificationMessage(
                user_id=organizer_id,
                type=NotificationType.EVENT_CANCELLED,
                message=(
                    f'Event "{event.title}" cancelled: {len(result.refunded_payment_ids)} '
                    f'payments refunded, {len(result.failed_payment_ids)} failed.'
                ),
                event_id=event_id,
            )
        )
        return result
