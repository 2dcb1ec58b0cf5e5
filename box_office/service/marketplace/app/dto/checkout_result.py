from typing import List, Optional

import attrs

from box_office.service.marketplace.domain.entity.payment_entity import Payment
from box_office.service.marketplace.domain.entity.ticket_entity import Ticket
from box_office.service.marketplace.domain.value_object.card import CardDetails


@attrs.define(frozen=True)
class PaymentSource:
    """Either a card already linked to the buyer (id + CVV) or a new card to verify and link"""

    payment_method_id: Optional[int] = None
    cvv: Optional[str] = attrs.field(default=None, repr=lambda _: '***')
    card: Optional[CardDetails] = None

    @classmethod
    def saved(cls, *, payment_method_id: int, cvv: str) -> 'PaymentSource':
        return cls(payment_method_id=payment_method_id, cvv=cvv)

    @classmethod
    def new_card(cls, *, card: CardDetails) -> 'PaymentSource':
        return cls(card=card)


@attrs.define(frozen=True)
class CheckoutResult:
    payment: Payment
    tickets: List[Ticket]
