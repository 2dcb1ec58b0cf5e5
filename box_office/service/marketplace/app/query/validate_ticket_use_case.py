from typing import Callable

from box_office.platform.database.unit_of_work import AbstractUnitOfWork
from box_office.platform.exception.storage_error import storage_error_as_internal
from box_office.platform.logging.loguru_io import Logger
from box_office.service.marketplace.domain.enum.ticket_validity import TicketValidity
from box_office.service.marketplace.domain.value_object.ticket_code import (
    is_well_formed_ticket_code,
)


class ValidateTicketUseCase:
    """
    Door check for an event. Only the event's organizer gets a VALID answer.

    Malformed input, unknown events and codes of other events are all INVALID;
    nothing here raises for bad input.
    """

    def __init__(
        self, *, uow_factory: Callable[[], AbstractUnitOfWork], ticket_code_length: int
    ) -> None:
        self.uow_factory = uow_factory
        self.ticket_code_length = ticket_code_length

    @Logger.io
    @storage_error_as_internal
    async def validate(self, *, organizer_id: int, event_id: int, code: str) -> TicketValidity:
        clean = str(code or '').strip().upper()
        if not is_well_formed_ticket_code(clean, self.ticket_code_length):
            return TicketValidity.INVALID

        async with self.uow_factory() as uow:
            event = await uow.event_repo.get_by_id(event_id=event_id)
            if not event or not event.is_owned_by(organizer_id):
                return TicketValidity.INVALID

            ticket = await uow.ticket_repo.get_by_code(code=clean)
            if not ticket or ticket.event_id != event_id:
                return TicketValidity.INVALID
        return TicketValidity.VALID
