from typing import Callable, Optional

from box_office.platform.database.unit_of_work import AbstractUnitOfWork
from box_office.platform.exception.exceptions import (
    ForbiddenError,
    InvalidArgumentError,
    NotFoundError,
)
from box_office.platform.exception.storage_error import storage_error_as_internal
from box_office.platform.logging.loguru_io import Logger
from box_office.service.marketplace.domain.entity.ticket_type_entity import TicketType


class EditTicketTypeUseCase:
    def __init__(self, *, uow_factory: Callable[[], AbstractUnitOfWork]) -> None:
        self.uow_factory = uow_factory

    @Logger.io
    @storage_error_as_internal
    async def edit(
        self,
        *,
        organizer_id: int,
        ticket_type_id: int,
        quantity_delta: int = 0,
        price_cents: Optional[int] = None,
    ) -> TicketType:
        """
        Organizer edit of a ticket type.

        Stock can only grow: quantity_delta is added to both the total and what
        is left. A new price applies to future cart adds and buy-now purchases;
        lines already in carts keep their snapshot.
        """
        if quantity_delta < 0:
            raise InvalidArgumentError('Ticket quantity can only be increased')
        if price_cents is not None and price_cents <= 0:
            raise InvalidArgumentError('Price must be positive')

        async with self.uow_factory() as uow:
            ticket_type = await uow.inventory_repo.lock_for_update(ticket_type_id=ticket_type_id)
            if not ticket_type:
                raise NotFoundError('Ticket type not found')

            event = await uow.event_repo.get_by_id(event_id=ticket_type.event_id)
            if not event:
                raise NotFoundError('Event not found')
            if not event.is_owned_by(organizer_id):
                raise ForbiddenError('Only the organizer can edit this event')

            if quantity_delta:
                ticket_type = await uow.inventory_repo.increase_quantity_only(
                    ticket_type_id=ticket_type_id, delta=quantity_delta
                )
            if price_cents is not None and price_cents != ticket_type.price_cents:
                ticket_type = await uow.inventory_repo.update_price(
                    ticket_type_id=ticket_type_id, price_cents=price_cents
                )
            await uow.commit()
            return ticket_type
