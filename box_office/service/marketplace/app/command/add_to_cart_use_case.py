from datetime import datetime, timezone
from typing import Callable

from box_office.platform.database.unit_of_work import AbstractUnitOfWork
from box_office.platform.exception.exceptions import (
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
)
from box_office.platform.exception.storage_error import storage_error_as_internal
from box_office.platform.logging.loguru_io import Logger
from box_office.service.marketplace.domain.entity.cart_entity import CartLine


def require_positive_quantity(quantity: int) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidArgumentError('Quantity must be a positive integer')


class AddToCartUseCase:
    """
    Put tickets in the buyer's cart, or add to a line already there.

    The stock check here is provisional; checkout re-validates under lock.
    The unit price is captured when the line is first inserted and kept on
    later increments.
    """

    def __init__(self, *, uow_factory: Callable[[], AbstractUnitOfWork]) -> None:
        self.uow_factory = uow_factory

    @Logger.io
    @storage_error_as_internal
    async def add_or_increment(
        self, *, user_id: int, ticket_type_id: int, quantity: int
    ) -> CartLine:
        require_positive_quantity(quantity)

        async with self.uow_factory() as uow:
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

            cart = await uow.cart_repo.get_or_create(user_id=user_id)

            # Atomic quantity += n; the stock check below sees the stored total
            line = await uow.cart_repo.increment_line(
                cart_id=cart.id,
                ticket_type_id=ticket_type_id,
                quantity=quantity,
                unit_price_cents=ticket_type.price_cents,
            )
            if line.quantity > ticket_type.quantity_left:
                raise ConflictError(f'Only {ticket_type.quantity_left} tickets left')
            await uow.commit()

        Logger.base.info(
            f'🛒 [CART] user={user_id} ticket_type={ticket_type_id} quantity={line.quantity}'
        )
        return line
