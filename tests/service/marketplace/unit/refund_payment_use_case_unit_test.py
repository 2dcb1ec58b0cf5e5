"""
Unit tests for RefundPaymentUseCase and CancelEventUseCase

Refund conservation: the sum of refunds never exceeds the charged amount, a full
refund voids the tickets and restocks inventory, and cancelling an event refunds
only that event's share of each payment.
"""

from unittest.mock import AsyncMock

import attrs
import pytest

from box_office.platform.exception.exceptions import (
    ConflictError,
    ForbiddenError,
    GatewayDeclinedError,
    InternalError,
    InvalidArgumentError,
    NotFoundError,
)
from box_office.service.marketplace.app.command.cancel_event_use_case import CancelEventUseCase
from box_office.service.marketplace.app.command.refund_payment_use_case import (
    RefundPaymentUseCase,
)
from box_office.service.marketplace.app.dto.gateway_result import RefundResult
from box_office.service.marketplace.domain.entity.payment_entity import Payment
from box_office.service.marketplace.domain.entity.ticket_entity import Ticket
from box_office.service.marketplace.domain.enum.decline_reason import DeclineReason
from box_office.service.marketplace.domain.enum.notification_type import NotificationType
from box_office.service.marketplace.domain.enum.payment_status import PaymentStatus


def _payment(*, id: int = 55, amount: int = 5500, refunded: int = 0, event_id=10) -> Payment:
    return Payment(
        id=id,
        user_id=1,
        payment_method_id=7,
        event_id=event_id,
        amount_cents=amount,
        refunded_cents=refunded,
        currency='CAD',
        idempotency_key=f'key-{id}',
        gateway_charge_id=f'ch_{id}',
    )


def _ticket(*, ticket_type_id: int, price: int, event_id: int = 10, payment_id: int = 55) -> Ticket:
    return Ticket(
        event_id=event_id,
        user_id=1,
        ticket_type_id=ticket_type_id,
        payment_id=payment_id,
        code='A' * 15,
        price_cents=price,
    )


def _apply_refund(payment: Payment):
    def record_refund(*, refund):
        refunded = payment.refunded_cents + refund.amount_cents
        status = PaymentStatus.REFUNDED if refunded == payment.amount_cents else payment.status
        return attrs.evolve(payment, refunded_cents=refunded, status=status)

    return record_refund


@pytest.fixture
def gateway() -> AsyncMock:
    gateway = AsyncMock()
    gateway.refund.side_effect = lambda **kw: RefundResult(
        refunded=True, amount_cents=kw['amount_cents'], refund_id='re_1'
    )
    return gateway


@pytest.fixture
def notification_sink() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def refund_use_case(uow_factory, gateway, notification_sink) -> RefundPaymentUseCase:
    return RefundPaymentUseCase(
        uow_factory=uow_factory,
        payment_gateway=gateway,
        notification_sink=notification_sink,
        gateway_timeout_seconds=0.5,
    )


class TestRefundPayment:
    @pytest.fixture(autouse=True)
    def repos(self, uow) -> None:
        payment = _payment()
        uow.payment_repo.lock_for_update.return_value = payment
        uow.payment_repo.get_gateway_account_id.return_value = 'acct_test'
        uow.payment_repo.get_refund_payment_id.return_value = None
        uow.payment_repo.record_refund.side_effect = _apply_refund(payment)
        uow.ticket_repo.list_by_payment.return_value = [
            _ticket(ticket_type_id=2, price=2500),
            _ticket(ticket_type_id=1, price=1500),
            _ticket(ticket_type_id=1, price=1500),
        ]
        uow.ticket_repo.void_for_payment.return_value = 3

    async def test_full_refund_restocks_and_voids_tickets(
        self, refund_use_case: RefundPaymentUseCase, uow, gateway, notification_sink
    ) -> None:
        # Act
        updated = await refund_use_case.refund(payment_id=55)

        # Assert
        assert updated.status is PaymentStatus.REFUNDED
        assert updated.refunded_cents == 5500
        assert gateway.refund.await_args.kwargs['amount_cents'] == 5500
        increments = [c.kwargs for c in uow.inventory_repo.increment.await_args_list]
        assert increments == [
            {'ticket_type_id': 1, 'quantity': 2},
            {'ticket_type_id': 2, 'quantity': 1},
        ]
        uow.ticket_repo.void_for_payment.assert_awaited_once_with(payment_id=55)
        uow.commit.assert_awaited_once()

        message = notification_sink.notify.await_args.kwargs['message']
        assert message.type is NotificationType.REFUND_ISSUED
        assert message.user_id == 1

    async def test_partial_refund_keeps_tickets(
        self, refund_use_case: RefundPaymentUseCase, uow
    ) -> None:
        updated = await refund_use_case.refund(payment_id=55, amount_cents=1500)

        assert updated.status is PaymentStatus.APPROVED
        assert updated.refundable_cents == 4000
        uow.inventory_repo.increment.assert_not_awaited()
        uow.ticket_repo.void_for_payment.assert_not_awaited()

    async def test_over_refund_is_a_conflict(
        self, refund_use_case: RefundPaymentUseCase, uow, gateway
    ) -> None:
        uow.payment_repo.lock_for_update.return_value = _payment(refunded=5000)

        with pytest.raises(ConflictError):
            await refund_use_case.refund(payment_id=55, amount_cents=501)

        gateway.refund.assert_not_awaited()

    async def test_already_fully_refunded(
        self, refund_use_case: RefundPaymentUseCase, uow, gateway
    ) -> None:
        uow.payment_repo.lock_for_update.return_value = _payment(refunded=5500)

        with pytest.raises(ConflictError):
            await refund_use_case.refund(payment_id=55)

        gateway.refund.assert_not_awaited()

    @pytest.mark.parametrize('amount', [0, -100, True])
    async def test_amount_must_be_positive(
        self, refund_use_case: RefundPaymentUseCase, uow, amount
    ) -> None:
        with pytest.raises(InvalidArgumentError):
            await refund_use_case.refund(payment_id=55, amount_cents=amount)

        assert uow.enter_count == 0

    async def test_unknown_payment(self, refund_use_case: RefundPaymentUseCase, uow) -> None:
        uow.payment_repo.lock_for_update.return_value = None

        with pytest.raises(NotFoundError):
            await refund_use_case.refund(payment_id=404)

    async def test_gateway_decline_records_nothing(
        self, refund_use_case: RefundPaymentUseCase, uow, gateway
    ) -> None:
        gateway.refund.side_effect = None
        gateway.refund.return_value = RefundResult(
            refunded=False, amount_cents=5500, reason=DeclineReason.ACCOUNT_NOT_FOUND
        )

        with pytest.raises(GatewayDeclinedError) as exc_info:
            await refund_use_case.refund(payment_id=55)

        assert exc_info.value.reason is DeclineReason.ACCOUNT_NOT_FOUND
        uow.payment_repo.record_refund.assert_not_awaited()
        uow.commit.assert_not_awaited()

    async def test_storage_failure_after_gateway_refund_is_internal(
        self, refund_use_case: RefundPaymentUseCase, uow
    ) -> None:
        uow.payment_repo.record_refund.side_effect = RuntimeError('connection reset')

        with pytest.raises(InternalError):
            await refund_use_case.refund(payment_id=55)

    async def test_caller_idempotency_key_reaches_gateway(
        self, refund_use_case: RefundPaymentUseCase, gateway
    ) -> None:
        await refund_use_case.refund(payment_id=55, idempotency_key='refund-55-a')

        assert gateway.refund.await_args.kwargs['idempotency_key'] == 'refund-55-a'


    async def test_replayed_key_returns_payment_without_second_refund(
        self, refund_use_case: RefundPaymentUseCase, uow, gateway, notification_sink
    ) -> None:
        uow.payment_repo.get_refund_payment_id.return_value = 55

        payment = await refund_use_case.refund(payment_id=55, idempotency_key='refund-55-a')

        assert payment.id == 55
        gateway.refund.assert_not_awaited()
        uow.payment_repo.record_refund.assert_not_awaited()
        notification_sink.notify.assert_not_awaited()

    async def test_key_of_another_payment_is_a_conflict(
        self, refund_use_case: RefundPaymentUseCase, uow, gateway
    ) -> None:
        uow.payment_repo.get_refund_payment_id.return_value = 54

        with pytest.raises(ConflictError):
            await refund_use_case.refund(payment_id=55, idempotency_key='refund-54-a')

        gateway.refund.assert_not_awaited()


class TestCancelEvent:
    @pytest.fixture
    def refund_mock(self) -> AsyncMock:
        return AsyncMock()

    @pytest.fixture
    def use_case(self, uow_factory, refund_mock, notification_sink) -> CancelEventUseCase:
        return CancelEventUseCase(
            uow_factory=uow_factory,
            refund_payment_use_case=refund_mock,
            notification_sink=notification_sink,
        )

    @pytest.fixture(autouse=True)
    def repos(self, uow, upcoming_event) -> None:
        uow.event_repo.get_by_id.return_value = upcoming_event
        uow.payment_repo.list_approved_for_event.return_value = [
            _payment(id=1, amount=3000, refunded=1000),
            # Spans event 10 and event 12; only the event-10 ticket is refunded
            _payment(id=2, amount=4000, event_id=None),
        ]
        uow.ticket_repo.list_by_payment.return_value = [
            _ticket(ticket_type_id=1, price=1500, payment_id=2),
            _ticket(ticket_type_id=3, price=2500, event_id=12, payment_id=2),
        ]

    async def test_cancel_refunds_each_payment_and_deletes_event(
        self, use_case: CancelEventUseCase, uow, refund_mock, notification_sink
    ) -> None:
        result = await use_case.cancel(organizer_id=99, event_id=10)

        refunds = {
            c.kwargs['payment_id']: c.kwargs['amount_cents']
            for c in refund_mock.refund.await_args_list
        }
        assert refunds == {1: 2000, 2: 1500}
        keys = [c.kwargs['idempotency_key'] for c in refund_mock.refund.await_args_list]
        assert keys == ['event-10-cancel-1', 'event-10-cancel-2']
        assert result.refunded_payment_ids == [1, 2]
        assert result.failed_payment_ids == []
        uow.event_repo.delete_cascade.assert_awaited_once_with(event_id=10)

        message = notification_sink.notify.await_args.kwargs['message']
        assert message.type is NotificationType.EVENT_CANCELLED
        assert message.user_id == 99

    async def test_one_failed_refund_does_not_stop_the_rest(
        self, use_case: CancelEventUseCase, uow, refund_mock
    ) -> None:
        refund_mock.refund.side_effect = [
            GatewayDeclinedError(DeclineReason.ACCOUNT_NOT_FOUND),
            _payment(id=2),
        ]

        result = await use_case.cancel(organizer_id=99, event_id=10)

        assert result.failed_payment_ids == [1]
        assert result.refunded_payment_ids == [2]
        uow.event_repo.delete_cascade.assert_awaited_once()

    async def test_only_organizer_can_cancel(
        self, use_case: CancelEventUseCase, uow, refund_mock
    ) -> None:
        with pytest.raises(ForbiddenError):
            await use_case.cancel(organizer_id=1, event_id=10)

        refund_mock.refund.assert_not_awaited()
        uow.event_repo.delete_cascade.assert_not_awaited()

    async def test_unknown_event(self, use_case: CancelEventUseCase, uow) -> None:
        uow.event_repo.get_by_id.return_value = None

        with pytest.raises(NotFoundError):
            await use_case.cancel(organizer_id=99, event_id=10)
