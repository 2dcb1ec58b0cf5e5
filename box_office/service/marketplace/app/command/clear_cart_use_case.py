from typing import Callable

from box_office.platform.database.unit_of_work import AbstractUnitOfWork
from box_office.platform.exception.storage_error import storage_error_as_internal
from box_office.platform.logging.loguru_io import Logger


class ClearCartUseCase:
    def __init__(self, *, uow_factory: Callable[[], AbstractUnitOfWork]) -> None:
        self.uow_factory = uow_factory

    @Logger.io
    @storage_error_as_internal
    async def clear(self, *, user_id: int) -> int:
        async with self.uow_factory() as uow:
            cart = await uow.cart_repo.get_or_create(user_id=user_id)
            removed = 0 if cart.is_empty else await uow.cart_repo.clear(cart_id=cart.id)
            await uow.commit()
            return removed
