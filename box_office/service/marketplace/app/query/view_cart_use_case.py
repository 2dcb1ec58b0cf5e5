from datetime import datetime, timezone
from typing import Callable

from box_office.platform.database.unit_of_work import AbstractUnitOfWork
from box_office.platform.exception.storage_error import storage_error_as_internal
from box_office.platform.logging.loguru_io import Logger
from box_office.service.marketplace.domain.entity.cart_entity import Cart


class ViewCartUseCase:
    """
    Return the cart with every line still purchasable.

    Lines whose ticket type is gone, or whose event has already started, are
    deleted on the way out, so a second view returns the same lines.
    """

    def __init__(self, *, uow_factory: Callable[[], AbstractUnitOfWork]) -> None:
        self.uow_factory = uow_factory

    @Logger.io
    @storage_error_as_internal
    async def view(self, *, user_id: int) -> Cart:
        now = datetime.now(timezone.utc)
        async with self.uow_factory() as uow:
            cart = await uow.cart_repo.get_or_create(user_id=user_id)
            events = await uow.event_repo.find_events_for_ticket_types(
                ticket_type_ids=[line.ticket_type_id for line in cart.lines]
            )

            live, stale = [], []
            for line in cart.lines:
                event = events.get(line.ticket_type_id)
                (live if event and event.is_purchasable(now) else stale).append(line)

            if stale:
                await uow.cart_repo.delete_lines(
                    cart_id=cart.id, ticket_type_ids=[line.ticket_type_id for line in stale]
                )
                Logger.base.info(f'🧹 [CART] Dropped {len(stale)} stale lines for user {user_id}')
            await uow.commit()

        return Cart(id=cart.id, owner_user_id=user_id, lines=live)
