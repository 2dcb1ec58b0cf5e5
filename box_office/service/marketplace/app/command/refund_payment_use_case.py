from collections import Counter
from typing import Callable, Optional

import anyio
from uuid_utils import uuid7

from box_office.platform.database.unit_of_work import AbstractUnitOfWork
from box_office.platform.exception.exceptions import (
    ConflictError,
    CustomBaseError,
    GatewayDeclinedError,
    InternalError,
    InvalidArgumentError,
    NotFoundError,
)
from box_office.platform.logging.loguru_io import Logger
from box_office.service.marketplace.app.interface.i_notification_sink import INotificationSink
from box_office.service.marketplace.app.interface.i_payment_gateway import IPaymentGateway
from box_office.service.marketplace.domain.entity.payment_entity import Payment, Refund
from box_office.service.marketplace.domain.enum.decline_reason import DeclineReason
from box_office.service.marketplace.domain.enum.notification_type import NotificationType
from box_office.service.marketplace.domain.enum.payment_status import PaymentStatus
from box_office.service.marketplace.domain.value_object.notification_message import (
    NotificationMessage,
)


class RefundPaymentUseCase:
    """
    Refund all or part of an approved payment.

    The sum of refunds never exceeds the charged amount. When a refund brings the
    payment to fully refunded, its tickets are voided and their units go back
    into inventory.
    """

    def __init__(
        self,
        *,
        uow_factory: Callable[[], AbstractUnitOfWork],
        payment_gateway: IPaymentGateway,
        notification_sink: INotificationSink,
        gateway_timeout_seconds: float,
    ) -> None:
        self.uow_factory = uow_factory
        self.payment_gateway = payment_gateway
        self.notification_sink = notification_sink
        self.gateway_timeout_seconds = gateway_timeout_seconds

    @Logger.io
    async def refund(
        self,
        *,
        payment_id: int,
        amount_cents: Optional[int] = None,
        idempotency_key: Optional[str] = None,
        message: Optional[str] = None,
    ) -> Payment:
        if amount_cents is not None and (
            isinstance(amount_cents, bool) or not isinstance(amount_cents, int) or amount_cents <= 0
        ):
            raise InvalidArgumentError('Refund amount must be a positive integer')
        idempotency_key = idempotency_key or str(uuid7())

        try:
            async with self.uow_factory() as uow:
                payment = await uow.payment_repo.lock_for_update(payment_id=payment_id)
                if not payment:
                    raise NotFoundError('Payment not found')

                applied_to = await uow.payment_repo.get_refund_payment_id(
                    idempotency_key=idempotency_key
                )
                if applied_to is not None:
                    if applied_to != payment_id:
                        raise ConflictError('Idempotency key already used for another payment')
                    Logger.base.info(f'🔁 [REFUND] key={idempotency_key} already applied')
                    return payment

                refundable = payment.refundable_cents
                amount = refundable if amount_cents is None else amount_cents
                if refundable <= 0:
                    raise ConflictError('Payment is already fully refunded')
                if amount > refundable:
                    raise ConflictError(f'At most {refundable} cents can still be refunded')

                account_id = await uow.payment_repo.get_gateway_account_id(
                    payment_method_id=payment.payment_method_id
                )
                if not account_id:
                    raise NotFoundError('Payment method not found')

                try:
                    with anyio.fail_after(self.gateway_timeout_seconds):
                        result = await self.payment_gateway.refund(
                            account_id=account_id,
                            amount_cents=amount,
                            idempotency_key=idempotency_key,
                        )
                except TimeoutError:
                    raise GatewayDeclinedError(DeclineReason.TIMEOUT, 'Payment gateway timed out')
                if not result.refunded:
                    raise GatewayDeclinedError(result.reason or DeclineReason.ACCOUNT_NOT_FOUND)

                updated = await uow.payment_repo.record_refund(
                    refund=Refund(
                        user_id=payment.user_id,
                        payment_id=payment_id,
                        amount_cents=amount,
                        currency=payment.currency,
                        gateway_refund_id=result.refund_id or '',
                        idempotency_key=idempotency_key,
                    )
                )
                if updated.status is PaymentStatus.REFUNDED:
                    await self._restock(uow=uow, payment_id=payment_id)
                await uow.commit()
        except CustomBaseError:
            raise
        except Exception as e:
            Logger.base.critical(
                f'🚨 [REFUND] payment={payment_id} key={idempotency_key} '
                f'may be refunded at the gateway but not recorded: {e}'
            )
            raise InternalError() from e

        Logger.base.info(
            f'↩️ [REFUND] payment={payment_id} refunded={amount} '
            f'total_refunded={updated.refunded_cents}/{updated.amount_cents}'
        )
        await self.notification_sink.notify(
            message=NotificationMessage(
                user_id=updated.user_id,
                type=NotificationType.REFUND_ISSUED,
                message=message or f'{amount} cents of payment {payment_id} were refunded.',
                event_id=updated.event_id,
                payment_id=payment_id,
            )
        )
        return updated

    @staticmethod
    async def _restock(*, uow: AbstractUnitOfWork, payment_id: int) -> None:
        tickets = await uow.ticket_repo.list_by_payment(payment_id=payment_id)
        per_type = Counter(ticket.ticket_type_id for ticket in tickets)
        for ticket_type_id in sorted(per_type):
            await uow.inventory_repo.increment(
                ticket_type_id=ticket_type_id, quantity=per_type[ticket_type_id]
            )
        await uow.ticket_repo.void_for_payment(payment_id=payment_id)
