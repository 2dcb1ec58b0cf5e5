from datetime import datetime
from typing import Optional

import attrs

from box_office.platform.exception.exceptions import InvalidArgumentError


def _validate_non_negative(instance: object, attribute: attrs.Attribute, value: int) -> None:
    if value < 0:
        raise InvalidArgumentError(f'{attribute.name} must not be negative')


@attrs.define
class TicketType:
    """A priced inventory bucket of one event"""

    event_id: int
    label: str
    price_cents: int = attrs.field(validator=_validate_non_negative)
    quantity_total: int = attrs.field(validator=_validate_non_negative)
    quantity_left: int = attrs.field(validator=_validate_non_negative)
    id: Optional[int] = None
    updated_at: Optional[datetime] = None

    def __attrs_post_init__(self) -> None:
        if self.quantity_left > self.quantity_total:
            raise InvalidArgumentError('quantity_left must not exceed quantity_total')

    def has_stock_for(self, quantity: int) -> bool:
        return 0 < quantity <= self.quantity_left


@attrs.define(frozen=True)
class TicketTypeSpec:
    """Ticket type as submitted by an organizer, before it has an id"""

    label: str
    price_cents: int
    quantity: int
