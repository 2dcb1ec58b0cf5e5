from datetime import datetime, timezone
from typing import Callable, Optional

from box_office.platform.database.unit_of_work import AbstractUnitOfWork
from box_office.platform.exception.exceptions import (
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
)
from box_office.platform.exception.storage_error import storage_error_as_internal
from box_office.platform.logging.loguru_io import Logger
from box_office.service.marketplace.domain.entity.cart_entity import CartLine


class SetCartQuantityUseCase:
    def __init__(self, *, uow_factory: Callable[[], AbstractUnitOfWork]) -> None:
        self.uow_factory = uow_factory

    @Logger.io
    @storage_error_as_internal
    async def set_quantity(
        self, *, user_id: int, ticket_type_id: int, quantity: int
    ) -> Optional[CartLine]:
        """
        Overwrite the line quantity (not add to it).

        Zero removes the line and returns None, even when there was no line.
        A missing line is inserted with the current price as its snapshot.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
            raise InvalidArgumentError('Quantity must be a non-negative integer')

        async with self.uow_factory() as uow:
            cart = await uow.cart_repo.get_or_create(user_id=user_id)
            existing = cart.find_line(ticket_type_id)

            if quantity == 0:
                if existing:
                    await uow.cart_repo.delete_lines(
                        cart_id=existing.cart_id, ticket_type_ids=[ticket_type_id]
                    )
                await uow.commit()
                return None

            ticket_type = await uow.inventory_repo.get_by_id(ticket_type_id=ticket_type_id)
            if not ticket_type:
                raise NotFoundError('Ticket type not found')
            event = await uow.event_repo.get_by_id(event_id=ticket_type.event_id)
            if not event:
                raise NotFoundError('Event not found')
            if not event.is_purchasable(datetime.now(timezone.utc)):
                raise ConflictError('Event is no longer on sale')
            if quantity > ticket_type.quantity_left:
                raise ConflictError(f'Only {ticket_type.quantity_left} tickets left')

            line = await uow.cart_repo.upsert_line(
                cart_id=cart.id,
                ticket_type_id=ticket_type_id,
                quantity=quantity,
                unit_price_cents=ticket_type.price_cents,
            )
            await uow.commit()
            return line
