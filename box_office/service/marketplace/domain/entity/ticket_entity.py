from datetime import datetime
from typing import Optional

import attrs


@attrs.define
class Ticket:
    event_id: int
    user_id: int
    ticket_type_id: int
    payment_id: int
    code: str
    price_cents: int
    id: Optional[int] = None
    purchased_at: Optional[datetime] = None
