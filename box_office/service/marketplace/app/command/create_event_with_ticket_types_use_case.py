from datetime import datetime
from typing import Callable, List, Tuple

from box_office.platform.database.unit_of_work import AbstractUnitOfWork
from box_office.platform.exception.exceptions import InvalidArgumentError
from box_office.platform.exception.storage_error import storage_error_as_internal
from box_office.platform.logging.loguru_io import Logger
from box_office.service.marketplace.domain.entity.event_entity import Event
from box_office.service.marketplace.domain.entity.ticket_type_entity import (
    TicketType,
    TicketTypeSpec,
)


class CreateEventWithTicketTypesUseCase:
    """
    Create an event together with its ticket types in one transaction

    Each ticket type starts with quantity_left == quantity_total.
    """

    def __init__(self, *, uow_factory: Callable[[], AbstractUnitOfWork]) -> None:
        self.uow_factory = uow_factory

    @Logger.io
    @storage_error_as_internal
    async def create(
        self,
        *,
        organizer_id: int,
        title: str,
        start_time: datetime,
        end_time: datetime,
        ticket_types: List[TicketTypeSpec],
    ) -> Tuple[Event, List[TicketType]]:
        if not ticket_types:
            raise InvalidArgumentError('At least one ticket type is required')
        for spec in ticket_types:
            if not spec.label or not spec.label.strip():
                raise InvalidArgumentError('Ticket type label cannot be empty')
            if spec.price_cents <= 0:
                raise InvalidArgumentError('Ticket price must be positive')
            if spec.quantity < 0:
                raise InvalidArgumentError('Ticket quantity must not be negative')

        event = Event(
            organizer_id=organizer_id, title=title, start_time=start_time, end_time=end_time
        )

        async with self.uow_factory() as uow:
            saved_event = await uow.event_repo.create(event=event)
            saved_types = await uow.inventory_repo.create_many(
                event_id=saved_event.id, specs=ticket_types  # type: ignore[arg-type]
            )
            await uow.commit()

        Logger.base.info(
            f'🎪 [EVENT] Created event {saved_event.id} with {len(saved_types)} ticket types'
        )
        return saved_event, saved_types
