"""
Cart Command Repository Interface

One cart per user, created lazily. Lines are unique per (cart, ticket type) and
carry the unit price captured when the line was first added.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from box_office.service.marketplace.domain.entity.cart_entity import Cart, CartLine


class ICartCommandRepo(ABC):
    @abstractmethod
    async def get_or_create(self, *, user_id: int) -> Cart:
        """Return the user's cart with its lines, creating an empty one if needed."""
        pass

    @abstractmethod
    async def get_line(self, *, cart_id: int, ticket_type_id: int) -> Optional[CartLine]:
        pass

    @abstractmethod
    async def increment_line(
        self, *, cart_id: int, ticket_type_id: int, quantity: int, unit_price_cents: int
    ) -> CartLine:
        """Add `quantity` atomically, inserting the line when absent.

        `unit_price_cents` becomes the snapshot only on insert. Returns the stored line.
        """
        pass

    @abstractmethod
    async def upsert_line(
        self, *, cart_id: int, ticket_type_id: int, quantity: int, unit_price_cents: int
    ) -> CartLine:
        """Overwrite the quantity, inserting the line when absent; snapshot as above."""
        pass

    @abstractmethod
    async def delete_lines(self, *, cart_id: int, ticket_type_ids: List[int]) -> int:
        pass

    @abstractmethod
    async def clear(self, *, cart_id: int) -> int:
        pass
