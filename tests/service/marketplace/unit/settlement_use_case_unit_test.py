from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from box_office.platform.exception.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
)
from box_office.service.marketplace.app.command.settle_expired_events_use_case import (
    SettleExpiredEventsUseCase,
)
from box_office.service.marketplace.app.dto.settlement_result import EventRevenue
from box_office.service.marketplace.app.query.get_payout_summary_use_case import (
    GetPayoutSummaryUseCase,
)
from box_office.service.marketplace.domain.entity.event_entity import Event
from box_office.service.marketplace.domain.entity.payout_entity import Payout
from box_office.service.marketplace.domain.enum.notification_type import NotificationType
from box_office.service.marketplace.domain.enum.payout_strategy import PayoutStrategy


def _ended_event(id: int) -> Event:
    now = datetime.now(timezone.utc)
    return Event(
        id=id,
        organizer_id=99,
        title=f'Show {id}',
        start_time=now - timedelta(days=2),
        end_time=now - timedelta(days=1),
    )


def _revenue(event_id: int, *, direct: int = 2000, via_tickets: int = 2000) -> EventRevenue:
    return EventRevenue(
        event_id=event_id,
        direct_cents=direct,
        via_tickets_cents=via_tickets,
        direct_payment_count=1,
        via_tickets_payment_count=2,
    )


@pytest.fixture
def notification_sink() -> AsyncMock:
    return AsyncMock()


class TestSettleExpiredEvents:
    @pytest.fixture
    def use_case(self, uow_factory, notification_sink) -> SettleExpiredEventsUseCase:
        return SettleExpiredEventsUseCase(
            uow_factory=uow_factory,
            notification_sink=notification_sink,
            currency='CAD',
            batch_size=50,
        )

    @pytest.fixture(autouse=True)
    def repos(self, uow) -> None:
        uow.event_repo.list_expired.return_value = [_ended_event(1), _ended_event(2)]
        uow.settlement_repo.get_payout.return_value = None
        uow.settlement_repo.get_event_revenue.side_effect = lambda event_id: _revenue(event_id)
        uow.settlement_repo.create_payout.side_effect = lambda payout: payout

    async def test_sweep_pays_out_and_deletes_each_event(
        self, use_case: SettleExpiredEventsUseCase, uow, notification_sink
    ) -> None:
        # Act
        report = await use_case.sweep()

        # Assert
        assert report.settled_event_ids == [1, 2]
        assert report.deleted_event_ids == [1, 2]
        assert report.failed == {}
        payouts = [c.kwargs['payout'] for c in uow.settlement_repo.create_payout.await_args_list]
        assert [p.amount_cents for p in payouts] == [2000, 2000]
        assert all(p.organizer_id == 99 and p.currency == 'CAD' for p in payouts)
        assert uow.event_repo.delete_cascade.await_count == 2
        assert uow.commit.await_count == 2

        types = [c.kwargs['message'].type for c in notification_sink.notify.await_args_list]
        assert types == [NotificationType.PAYOUT_ISSUED, NotificationType.PAYOUT_ISSUED]

    async def test_larger_aggregate_wins(self, use_case: SettleExpiredEventsUseCase, uow) -> None:
        uow.event_repo.list_expired.return_value = [_ended_event(1)]
        uow.settlement_repo.get_event_revenue.side_effect = None
        uow.settlement_repo.get_event_revenue.return_value = _revenue(1, direct=0, via_tickets=3500)

        await use_case.sweep()

        payout = uow.settlement_repo.create_payout.await_args.kwargs['payout']
        assert payout.amount_cents == 3500
        assert payout.strategy is PayoutStrategy.VIA_TICKETS
        assert payout.approved_payment_count == 2

    async def test_one_failing_event_does_not_block_the_batch(
        self, use_case: SettleExpiredEventsUseCase, uow, notification_sink
    ) -> None:
        def revenue(event_id: int) -> EventRevenue:
            if event_id == 1:
                raise RuntimeError('lock timeout')
            return _revenue(event_id)

        uow.settlement_repo.get_event_revenue.side_effect = revenue

        report = await use_case.sweep()

        assert list(report.failed) == [1]
        assert 'lock timeout' in report.failed[1]
        assert report.settled_event_ids == [2]
        assert report.processed_count == 2
        uow.event_repo.delete_cascade.assert_awaited_once_with(event_id=2)
        notification_sink.notify.assert_awaited_once()

    async def test_already_paid_out_event_is_only_deleted(
        self, use_case: SettleExpiredEventsUseCase, uow, notification_sink
    ) -> None:
        uow.event_repo.list_expired.return_value = [_ended_event(1)]
        uow.settlement_repo.get_payout.return_value = Payout(
            id=5,
            event_id=1,
            organizer_id=99,
            amount_cents=2000,
            currency='CAD',
            approved_payment_count=1,
            strategy=PayoutStrategy.DIRECT,
        )

        report = await use_case.sweep()

        uow.settlement_repo.create_payout.assert_not_awaited()
        uow.event_repo.delete_cascade.assert_awaited_once_with(event_id=1)
        assert report.deleted_event_ids == [1]
        assert report.settled_event_ids == []
        notification_sink.notify.assert_not_awaited()

    async def test_nothing_expired(self, use_case: SettleExpiredEventsUseCase, uow) -> None:
        uow.event_repo.list_expired.return_value = []

        report = await use_case.sweep()

        assert report.processed_count == 0
        uow.commit.assert_not_awaited()

    async def test_batch_size_and_now_are_passed_through(
        self, use_case: SettleExpiredEventsUseCase, uow
    ) -> None:
        now = datetime(2030, 1, 1, tzinfo=timezone.utc)

        await use_case.sweep(now=now)

        uow.event_repo.list_expired.assert_awaited_once_with(now=now, limit=50, after=None)

    async def test_failing_event_does_not_hold_back_the_next_page(
        self, uow_factory, uow, notification_sink
    ) -> None:
        # Arrange
        use_case = SettleExpiredEventsUseCase(
            uow_factory=uow_factory,
            notification_sink=notification_sink,
            currency='CAD',
            batch_size=1,
        )
        stuck, healthy = _ended_event(1), _ended_event(2)
        uow.event_repo.list_expired.side_effect = [[stuck], [healthy], []]

        def revenue(event_id: int) -> EventRevenue:
            if event_id == 1:
                raise RuntimeError('payout insert failed')
            return _revenue(event_id)

        uow.settlement_repo.get_event_revenue.side_effect = revenue

        # Act
        report = await use_case.sweep()

        # Assert
        assert list(report.failed) == [1]
        assert report.settled_event_ids == [2]
        cursors = [c.kwargs['after'] for c in uow.event_repo.list_expired.await_args_list]
        assert cursors == [None, (stuck.end_time, 1), (healthy.end_time, 2)]


class TestPayoutSummary:
    @pytest.fixture
    def use_case(self, uow_factory) -> GetPayoutSummaryUseCase:
        return GetPayoutSummaryUseCase(uow_factory=uow_factory, currency='CAD')

    async def test_summary_of_ended_event(self, use_case: GetPayoutSummaryUseCase, uow) -> None:
        uow.event_repo.get_by_id.return_value = _ended_event(1)
        uow.settlement_repo.get_event_revenue.return_value = _revenue(1, direct=4000, via_tickets=0)

        summary = await use_case.summary(organizer_id=99, event_id=1)

        assert summary.amount_cents == 4000
        assert summary.strategy is PayoutStrategy.DIRECT
        assert summary.approved_payment_count == 1
        assert summary.currency == 'CAD'

    async def test_event_still_running(
        self, use_case: GetPayoutSummaryUseCase, uow, upcoming_event
    ) -> None:
        uow.event_repo.get_by_id.return_value = upcoming_event

        with pytest.raises(ConflictError):
            await use_case.summary(organizer_id=99, event_id=10)

    async def test_no_approved_payments(self, use_case: GetPayoutSummaryUseCase, uow) -> None:
        uow.event_repo.get_by_id.return_value = _ended_event(1)
        uow.settlement_repo.get_event_revenue.return_value = EventRevenue(
            event_id=1,
            direct_cents=0,
            via_tickets_cents=0,
            direct_payment_count=0,
            via_tickets_payment_count=0,
        )

        with pytest.raises(ConflictError):
            await use_case.summary(organizer_id=99, event_id=1)

    async def test_not_the_organizer(self, use_case: GetPayoutSummaryUseCase, uow) -> None:
        uow.event_repo.get_by_id.return_value = _ended_event(1)

        with pytest.raises(ForbiddenError):
            await use_case.summary(organizer_id=1, event_id=1)

    async def test_unknown_event(self, use_case: GetPayoutSummaryUseCase, uow) -> None:
        uow.event_repo.get_by_id.return_value = None

        with pytest.raises(NotFoundError):
            await use_case.summary(organizer_id=99, event_id=1)
