from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from box_office.service.marketplace.domain.entity.ticket_entity import Ticket


class ITicketCommandRepo(ABC):
    @abstractmethod
    async def try_create_with_purchase(self, *, ticket: Ticket) -> Optional[Ticket]:
        """
        Insert the ticket and its purchase row inside a savepoint.

        Returns None when the ticket code already exists; the savepoint is rolled
        back and the surrounding transaction stays usable for a retry.
        """
        pass

    @abstractmethod
    async def list_by_user(
        self, *, user_id: int, offset: int, limit: int
    ) -> Tuple[List[Ticket], int]:
        """Page of the user's tickets (newest first) and the total count."""
        pass

    @abstractmethod
    async def get_by_code(self, *, code: str) -> Optional[Ticket]:
        pass

    @abstractmethod
    async def list_by_payment(self, *, payment_id: int) -> List[Ticket]:
        pass

    @abstractmethod
    async def void_for_payment(self, *, payment_id: int) -> int:
        """Delete the payment's purchases and tickets; returns the number of tickets removed."""
        pass
