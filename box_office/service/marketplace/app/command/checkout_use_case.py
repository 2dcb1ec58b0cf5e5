"""
Checkout Use Case

Turns the buyer's cart (or a single "buy now" pair) into tickets inside one
unit of work:

1. Lock the ticket-type rows in ascending id order and re-validate each line
2. Authorize the total with the gateway (bounded by a timeout)
3. Decrement inventory, write Payment, Ticket and Purchase rows, drop cart lines
4. Commit, then notify the buyer

Any failure after the gateway approved the charge gets a compensating refund.
"""

from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

import anyio
from opentelemetry import trace
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
from box_office.service.marketplace.app.command.add_to_cart_use_case import (
    require_positive_quantity,
)
from box_office.service.marketplace.app.command.link_payment_method_use_case import (
    LinkPaymentMethodUseCase,
)
from box_office.service.marketplace.app.dto.checkout_result import CheckoutResult, PaymentSource
from box_office.service.marketplace.app.dto.gateway_result import AuthorizationResult
from box_office.service.marketplace.app.interface.i_notification_sink import INotificationSink
from box_office.service.marketplace.app.interface.i_payment_gateway import IPaymentGateway
from box_office.service.marketplace.domain.entity.cart_entity import Cart
from box_office.service.marketplace.domain.entity.event_entity import Event
from box_office.service.marketplace.domain.entity.payment_entity import Payment
from box_office.service.marketplace.domain.entity.ticket_entity import Ticket
from box_office.service.marketplace.domain.enum.decline_reason import DeclineReason
from box_office.service.marketplace.domain.enum.notification_type import NotificationType
from box_office.service.marketplace.domain.value_object.cart_selection import CartSelection
from box_office.service.marketplace.domain.value_object.notification_message import (
    NotificationMessage,
)
from box_office.service.marketplace.domain.value_object.ticket_code import generate_ticket_code


class CheckoutUseCase:
    def __init__(
        self,
        *,
        uow_factory: Callable[[], AbstractUnitOfWork],
        payment_gateway: IPaymentGateway,
        notification_sink: INotificationSink,
        link_payment_method_use_case: LinkPaymentMethodUseCase,
        currency: str,
        gateway_timeout_seconds: float,
        ticket_code_length: int,
        ticket_code_max_attempts: int,
    ) -> None:
        self.uow_factory = uow_factory
        self.payment_gateway = payment_gateway
        self.notification_sink = notification_sink
        self.link_payment_method_use_case = link_payment_method_use_case
        self.currency = currency
        self.gateway_timeout_seconds = gateway_timeout_seconds
        self.ticket_code_length = ticket_code_length
        self.ticket_code_max_attempts = ticket_code_max_attempts
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def checkout(
        self,
        *,
        user_id: int,
        payment_source: PaymentSource,
        ticket_type_id: Optional[int] = None,
        quantity: Optional[int] = None,
    ) -> CheckoutResult:
        """
        Purchase the cart, or exactly `quantity` of `ticket_type_id` when given.

        A new card is verified and linked before anything is locked, so it stays
        in the wallet even when the purchase itself is then declined.

        Raises:
            InvalidArgumentError: empty selection, bad quantity or payment source
            NotFoundError: unknown ticket type, event or payment method
            ConflictError: event no longer on sale or not enough tickets left
            GatewayDeclinedError: the gateway declined or timed out
            InternalError: storage failure or ticket codes exhausted
        """
        buy_now = ticket_type_id is not None
        if buy_now:
            require_positive_quantity(quantity)  # type: ignore[arg-type]

        with self.tracer.start_as_current_span(
            'marketplace.checkout',
            attributes={'user.id': user_id, 'checkout.buy_now': buy_now},
        ) as span:
            payment_method_id, cvv = await self._resolve_payment_source(
                user_id=user_id, payment_source=payment_source
            )
            idempotency_key = str(uuid7())
            account_id: Optional[str] = None
            approval: Optional[AuthorizationResult] = None

            try:
                async with self.uow_factory() as uow:
                    payment_method = await uow.payment_method_repo.get_for_user(
                        user_id=user_id, payment_method_id=payment_method_id
                    )
                    if not payment_method:
                        raise NotFoundError('Payment method not found')
                    account_id = payment_method.gateway_account_id

                    cart: Optional[Cart] = None
                    if buy_now:
                        selections = await self._buy_now_selection(
                            uow=uow,
                            ticket_type_id=ticket_type_id,  # type: ignore[arg-type]
                            quantity=quantity,  # type: ignore[arg-type]
                        )
                    else:
                        cart = await uow.cart_repo.get_or_create(user_id=user_id)
                        if cart.is_empty:
                            raise InvalidArgumentError('Cart is empty')
                        selections = [line.to_selection() for line in cart.lines]

                    # Ascending ticket-type id keeps lock order deterministic
                    selections.sort(key=lambda s: s.ticket_type_id)
                    events = await self._lock_and_validate(uow=uow, selections=selections)

                    amount_cents = sum(s.subtotal_cents for s in selections)
                    if amount_cents <= 0:
                        raise InvalidArgumentError('Checkout total must be positive')
                    span.set_attribute('checkout.amount_cents', amount_cents)

                    approval = await self._authorize(
                        account_id=account_id,
                        amount_cents=amount_cents,
                        cvv=cvv,
                        idempotency_key=idempotency_key,
                    )

                    for selection in selections:
                        decremented = await uow.inventory_repo.decrement(
                            ticket_type_id=selection.ticket_type_id, quantity=selection.quantity
                        )
                        if not decremented:
                            raise ConflictError('Not enough tickets left')

                    event_ids = {event.id for event in events.values()}
                    payment = await uow.payment_repo.create(
                        payment=Payment(
                            user_id=user_id,
                            payment_method_id=payment_method_id,
                            event_id=event_ids.pop() if len(event_ids) == 1 else None,
                            amount_cents=amount_cents,
                            currency=self.currency,
                            gateway_charge_id=approval.charge_id or '',
                            idempotency_key=idempotency_key,
                        )
                    )

                    tickets: List[Ticket] = []
                    for selection in selections:
                        event_id = events[selection.ticket_type_id].id
                        for _ in range(selection.quantity):
                            tickets.append(
                                await self._issue_ticket(
                                    uow=uow,
                                    ticket=Ticket(
                                        event_id=event_id,  # type: ignore[arg-type]
                                        user_id=user_id,
                                        ticket_type_id=selection.ticket_type_id,
                                        payment_id=payment.id,  # type: ignore[arg-type]
                                        code='',
                                        price_cents=selection.unit_price_cents,
                                    ),
                                )
                            )

                    if cart is not None:
                        await uow.cart_repo.delete_lines(
                            cart_id=cart.id,  # type: ignore[arg-type]
                            ticket_type_ids=[s.ticket_type_id for s in selections],
                        )

                    await uow.commit()
            except CustomBaseError:
                await self._compensate(
                    approval=approval, account_id=account_id, idempotency_key=idempotency_key
                )
                raise
            except Exception as e:
                Logger.base.exception(
                    f'💥 [CHECKOUT] user={user_id} key={idempotency_key} failed: {e}'
                )
                await self._compensate(
                    approval=approval, account_id=account_id, idempotency_key=idempotency_key
                )
                raise InternalError() from e

            span.set_attribute('checkout.payment_id', payment.id or 0)

        Logger.base.info(
            f'✅ [CHECKOUT] user={user_id} payment={payment.id} '
            f'amount={payment.amount_cents} tickets={len(tickets)}'
        )
        await self.notification_sink.notify(
            message=NotificationMessage(
                user_id=user_id,
                type=NotificationType.PAYMENT_APPROVED,
                message=(
                    f'Payment {payment.id} approved: {len(tickets)} ticket(s), '
                    f'{payment.amount_cents} {payment.currency} cents'
                ),
                event_id=payment.event_id,
                payment_id=payment.id,
            )
        )
        return CheckoutResult(payment=payment, tickets=tickets)

    async def _resolve_payment_source(
        self, *, user_id: int, payment_source: PaymentSource
    ) -> tuple[int, str]:
        if payment_source.card is not None:
            payment_method = await self.link_payment_method_use_case.link(
                user_id=user_id, card=payment_source.card, allow_existing=True
            )
            return payment_method.id, payment_source.card.cvv  # type: ignore[return-value]

        if payment_source.payment_method_id is None or not payment_source.cvv:
            raise InvalidArgumentError('A saved payment method and its CVV are required')
        return payment_source.payment_method_id, payment_source.cvv

    @staticmethod
    async def _buy_now_selection(
        *, uow: AbstractUnitOfWork, ticket_type_id: int, quantity: int
    ) -> List[CartSelection]:
        # Buy-now is charged at the live price; cart lines keep their snapshot
        ticket_type = await uow.inventory_repo.get_by_id(ticket_type_id=ticket_type_id)
        if not ticket_type:
            raise NotFoundError('Ticket type not found')
        return [
            CartSelection(
                ticket_type_id=ticket_type_id,
                quantity=quantity,
                unit_price_cents=ticket_type.price_cents,
            )
        ]

    @staticmethod
    async def _lock_and_validate(
        *, uow: AbstractUnitOfWork, selections: List[CartSelection]
    ) -> Dict[int, Event]:
        now = datetime.now(timezone.utc)
        events = await uow.event_repo.find_events_for_ticket_types(
            ticket_type_ids=[s.ticket_type_id for s in selections]
        )
        for selection in selections:
            ticket_type = await uow.inventory_repo.lock_for_update(
                ticket_type_id=selection.ticket_type_id
            )
            event = events.get(selection.ticket_type_id)
            if not ticket_type or not event:
                raise NotFoundError('Ticket type not found')
            if not event.is_purchasable(now):
                raise ConflictError(f'Event "{event.title}" is no longer on sale')
            if selection.quantity > ticket_type.quantity_left:
                raise ConflictError(
                    f'Only {ticket_type.quantity_left} tickets left for {ticket_type.label}'
                )
        return events

    async def _authorize(
        self, *, account_id: str, amount_cents: int, cvv: str, idempotency_key: str
    ) -> AuthorizationResult:
        try:
            with anyio.fail_after(self.gateway_timeout_seconds):
                result = await self.payment_gateway.authorize(
                    account_id=account_id,
                    amount_cents=amount_cents,
                    currency=self.currency,
                    cvv=cvv,
                    idempotency_key=idempotency_key,
                )
        except TimeoutError:
            Logger.base.warning(f'⏱️ [CHECKOUT] Gateway timed out, key={idempotency_key}')
            raise GatewayDeclinedError(DeclineReason.TIMEOUT, 'Payment gateway timed out')

        if not result.approved:
            raise GatewayDeclinedError(result.reason or DeclineReason.INSUFFICIENT_FUNDS)
        return result

    async def _issue_ticket(self, *, uow: AbstractUnitOfWork, ticket: Ticket) -> Ticket:
        for _ in range(self.ticket_code_max_attempts):
            ticket.code = generate_ticket_code(self.ticket_code_length)
            created = await uow.ticket_repo.try_create_with_purchase(ticket=ticket)
            if created:
                return created

        Logger.base.error(
            f'🎟️ [CHECKOUT] No free ticket code after {self.ticket_code_max_attempts} attempts'
        )
        raise InternalError('Could not allocate a ticket code')

    async def _compensate(
        self,
        *,
        approval: Optional[AuthorizationResult],
        account_id: Optional[str],
        idempotency_key: str,
    ) -> None:
        if approval is None or not approval.approved or account_id is None:
            return

        context = (
            f'account={account_id} charge={approval.charge_id} '
            f'amount={approval.amount_cents} key={idempotency_key}'
        )
        try:
            result = await self.payment_gateway.refund(
                account_id=account_id,
                amount_cents=approval.amount_cents,
                idempotency_key=f'{idempotency_key}:compensate',
            )
        except Exception as e:
            Logger.base.critical(f'🚨 [CHECKOUT] Compensating refund raised: {e} ({context})')
            return

        if result.refunded:
            Logger.base.warning(f'↩️ [CHECKOUT] Compensating refund issued ({context})')
        else:
            Logger.base.critical(
                f'🚨 [CHECKOUT] Compensating refund declined: {result.reason} ({context})'
            )
