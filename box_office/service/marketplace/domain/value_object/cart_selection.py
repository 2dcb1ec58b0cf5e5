import attrs


@attrs.define(frozen=True)
class CartSelection:
    """One (ticket type, quantity) pair headed for checkout, priced at its snapshot"""

    ticket_type_id: int
    quantity: int
    unit_price_cents: int

    @property
    def subtotal_cents(self) -> int:
        return self.unit_price_cents * self.quantity
