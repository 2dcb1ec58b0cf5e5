from typing import List

import attrs

from box_office.service.marketplace.domain.entity.ticket_entity import Ticket


@attrs.define(frozen=True)
class TicketPage:
    items: List[Ticket]
    page: int
    page_size: int
    total: int

    @property
    def has_next(self) -> bool:
        return self.page * self.page_size < self.total
