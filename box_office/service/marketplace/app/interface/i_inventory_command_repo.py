"""
Inventory Command Repository Interface

Ticket-type rows are the only stock in the system. Every mutation happens inside
the caller's transaction; decrement is a single conditional UPDATE so concurrent
checkouts serialize in the database instead of in application code.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from box_office.service.marketplace.domain.entity.ticket_type_entity import (
    TicketType,
    TicketTypeSpec,
)


class IInventoryCommandRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, ticket_type_id: int) -> Optional[TicketType]:
        pass

    @abstractmethod
    async def lock_for_update(self, *, ticket_type_id: int) -> Optional[TicketType]:
        """SELECT ... FOR UPDATE; the lock lasts until the caller's transaction ends."""
        pass

    @abstractmethod
    async def decrement(self, *, ticket_type_id: int, quantity: int) -> bool:
        """Take `quantity` units; False means sold out (never raises for that)."""
        pass

    @abstractmethod
    async def increment(self, *, ticket_type_id: int, quantity: int) -> None:
        """Return units to stock, never beyond quantity_total."""
        pass

    @abstractmethod
    async def increase_quantity_only(self, *, ticket_type_id: int, delta: int) -> TicketType:
        """Grow quantity_total and quantity_left by `delta`; a negative delta is rejected."""
        pass

    @abstractmethod
    async def update_price(self, *, ticket_type_id: int, price_cents: int) -> TicketType:
        pass

    @abstractmethod
    async def create_many(
        self, *, event_id: int, specs: List[TicketTypeSpec]
    ) -> List[TicketType]:
        pass

    @abstractmethod
    async def list_by_event(self, *, event_id: int) -> List[TicketType]:
        pass
