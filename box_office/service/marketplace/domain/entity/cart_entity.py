from typing import List, Optional

import attrs

from box_office.service.marketplace.domain.value_object.cart_selection import CartSelection


@attrs.define
class CartLine:
    cart_id: int
    ticket_type_id: int
    quantity: int
    unit_price_cents_snapshot: int
    id: Optional[int] = None

    @property
    def subtotal_cents(self) -> int:
        return self.unit_price_cents_snapshot * self.quantity

    def to_selection(self) -> CartSelection:
        return CartSelection(
            ticket_type_id=self.ticket_type_id,
            quantity=self.quantity,
            unit_price_cents=self.unit_price_cents_snapshot,
        )


@attrs.define
class Cart:
    owner_user_id: int
    id: Optional[int] = None
    lines: List[CartLine] = attrs.field(factory=list)

    def total_cents(self) -> int:
        return sum(line.subtotal_cents for line in self.lines)

    def find_line(self, ticket_type_id: int) -> Optional[CartLine]:
        return next((line for line in self.lines if line.ticket_type_id == ticket_type_id), None)

    @property
    def is_empty(self) -> bool:
        return not self.lines
