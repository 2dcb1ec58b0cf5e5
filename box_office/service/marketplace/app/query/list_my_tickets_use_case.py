from typing import Callable, Optional

from box_office.platform.database.unit_of_work import AbstractUnitOfWork
from box_office.platform.exception.storage_error import storage_error_as_internal
from box_office.platform.logging.loguru_io import Logger
from box_office.service.marketplace.app.dto.ticket_page import TicketPage


class ListMyTicketsUseCase:
    def __init__(
        self,
        *,
        uow_factory: Callable[[], AbstractUnitOfWork],
        default_page_size: int,
        max_page_size: int,
    ) -> None:
        self.uow_factory = uow_factory
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    @Logger.io
    @storage_error_as_internal
    async def list(
        self, *, user_id: int, page: int = 1, page_size: Optional[int] = None
    ) -> TicketPage:
        page = max(page, 1)
        size = min(max(page_size or self.default_page_size, 1), self.max_page_size)

        async with self.uow_factory() as uow:
            tickets, total = await uow.ticket_repo.list_by_user(
                user_id=user_id, offset=(page - 1) * size, limit=size
            )
        return TicketPage(items=tickets, page=page, page_size=size, total=total)
