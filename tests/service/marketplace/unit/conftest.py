from datetime import datetime, timedelta, timezone
from typing import Callable
from unittest.mock import AsyncMock

import pytest

from box_office.service.marketplace.domain.entity.event_entity import Event


class FakeUnitOfWork:
    """Unit of work whose repositories are AsyncMocks; records commit/rollback calls."""

    def __init__(self) -> None:
        self.event_repo = AsyncMock()
        self.inventory_repo = AsyncMock()
        self.cart_repo = AsyncMock()
        self.payment_method_repo = AsyncMock()
        self.payment_repo = AsyncMock()
        self.ticket_repo = AsyncMock()
        self.settlement_repo = AsyncMock()
        self.commit = AsyncMock()
        self.rollback = AsyncMock()
        self.enter_count = 0

    async def __aenter__(self) -> 'FakeUnitOfWork':
        self.enter_count += 1
        return self

    async def __aexit__(self, *args) -> None:
        await self.rollback()


@pytest.fixture
def uow() -> FakeUnitOfWork:
    return FakeUnitOfWork()


@pytest.fixture
def uow_factory(uow: FakeUnitOfWork) -> Callable[[], FakeUnitOfWork]:
    return lambda: uow


@pytest.fixture
def upcoming_event() -> Event:
    now = datetime.now(timezone.utc)
    return Event(
        id=10,
        organizer_id=99,
        title='Spring Concert',
        start_time=now + timedelta(days=7),
        end_time=now + timedelta(days=7, hours=3),
    )


@pytest.fixture
def started_event() -> Event:
    now = datetime.now(timezone.utc)
    return Event(
        id=11,
        organizer_id=99,
        title='Matinee',
        start_time=now - timedelta(hours=1),
        end_time=now + timedelta(hours=2),
    )

