"""
Unit tests for the organizer and wallet use cases

Covers:
- Ticket prices must be positive at creation and on edit
- Database failures surface as InternalError with the original error chained
"""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from box_office.platform.exception.exceptions import InternalError, InvalidArgumentError
from box_office.service.marketplace.app.command.cancel_event_use_case import CancelEventUseCase
from box_office.service.marketplace.app.command.create_event_with_ticket_types_use_case import (
    CreateEventWithTicketTypesUseCase,
)
from box_office.service.marketplace.app.command.edit_ticket_type_use_case import (
    EditTicketTypeUseCase,
)
from box_office.service.marketplace.app.command.link_payment_method_use_case import (
    LinkPaymentMethodUseCase,
)
from box_office.service.marketplace.app.dto.gateway_result import GatewayAccount
from box_office.service.marketplace.domain.entity.ticket_type_entity import TicketTypeSpec
from box_office.service.marketplace.domain.value_object.card import CardDetails
from tests.service.marketplace.builders import VALID_CARD_NUMBER, make_ticket_type


def _locked() -> OperationalError:
    return OperationalError('UPDATE ticket_type', {}, Exception('database is locked'))


class TestCreateEvent:
    @pytest.fixture
    def use_case(self, uow_factory) -> CreateEventWithTicketTypesUseCase:
        return CreateEventWithTicketTypesUseCase(uow_factory=uow_factory)

    @pytest.mark.parametrize('price_cents', [0, -100])
    async def test_price_must_be_positive(
        self, use_case: CreateEventWithTicketTypesUseCase, uow, upcoming_event, price_cents
    ) -> None:
        with pytest.raises(InvalidArgumentError, match='must be positive'):
            await use_case.create(
                organizer_id=99,
                title='Free Gig',
                start_time=upcoming_event.start_time,
                end_time=upcoming_event.end_time,
                ticket_types=[
                    TicketTypeSpec(label='GA', price_cents=1500, quantity=10),
                    TicketTypeSpec(label='Guest list', price_cents=price_cents, quantity=5),
                ],
            )

        assert uow.enter_count == 0

    async def test_storage_failure(
        self, use_case: CreateEventWithTicketTypesUseCase, uow, upcoming_event
    ) -> None:
        uow.event_repo.create.return_value = upcoming_event
        uow.inventory_repo.create_many.side_effect = IntegrityError(
            'INSERT INTO ticket_type', {}, Exception('CHECK constraint failed')
        )

        with pytest.raises(InternalError) as exc_info:
            await use_case.create(
                organizer_id=99,
                title='Spring Concert',
                start_time=upcoming_event.start_time,
                end_time=upcoming_event.start_time + timedelta(hours=2),
                ticket_types=[TicketTypeSpec(label='GA', price_cents=1500, quantity=10)],
            )

        assert isinstance(exc_info.value.__cause__, IntegrityError)
        uow.commit.assert_not_awaited()


class TestEditTicketType:
    @pytest.fixture
    def use_case(self, uow_factory) -> EditTicketTypeUseCase:
        return EditTicketTypeUseCase(uow_factory=uow_factory)

    async def test_price_cannot_drop_to_zero(self, use_case: EditTicketTypeUseCase, uow) -> None:
        with pytest.raises(InvalidArgumentError, match='must be positive'):
            await use_case.edit(organizer_id=99, ticket_type_id=1, price_cents=0)

        assert uow.enter_count == 0

    async def test_storage_failure(
        self, use_case: EditTicketTypeUseCase, uow, upcoming_event
    ) -> None:
        uow.inventory_repo.lock_for_update.return_value = make_ticket_type(id=1)
        uow.event_repo.get_by_id.return_value = upcoming_event
        uow.inventory_repo.increase_quantity_only.side_effect = _locked()

        with pytest.raises(InternalError):
            await use_case.edit(organizer_id=99, ticket_type_id=1, quantity_delta=5)

        uow.commit.assert_not_awaited()


class TestStorageFailureElsewhere:
    async def test_link_payment_method(self, uow_factory, uow) -> None:
        gateway = AsyncMock()
        gateway.verify.return_value = GatewayAccount(
            account_id='acct_1',
            holder_name='Ada Lovelace',
            last4='4242',
            exp_month=12,
            exp_year=2040,
            currency='USD',
            balance_cents=500_000,
        )
        uow.payment_method_repo.get_by_gateway_account_id.side_effect = _locked()
        use_case = LinkPaymentMethodUseCase(
            uow_factory=uow_factory, payment_gateway=gateway, gateway_timeout_seconds=1.0
        )
        card = CardDetails.create(
            number=VALID_CARD_NUMBER,
            holder_name='Ada Lovelace',
            cvv='321',
            exp_month=12,
            exp_year=2040,
        )

        with pytest.raises(InternalError):
            await use_case.link(user_id=1, card=card)

        uow.commit.assert_not_awaited()

    async def test_cancel_event_delete(self, uow_factory, uow, upcoming_event) -> None:
        # No sales, so the delete is the only write
        uow.event_repo.get_by_id.return_value = upcoming_event
        uow.payment_repo.list_approved_for_event.return_value = []
        uow.event_repo.delete_cascade.side_effect = _locked()
        notification_sink = AsyncMock()
        use_case = CancelEventUseCase(
            uow_factory=uow_factory,
            refund_payment_use_case=AsyncMock(),
            notification_sink=notification_sink,
        )

        with pytest.raises(InternalError):
            await use_case.cancel(organizer_id=99, event_id=10)

        uow.commit.assert_not_awaited()
        notification_sink.notify.assert_not_awaited()
