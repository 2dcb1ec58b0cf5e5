from datetime import datetime
from typing import Optional

import attrs

from box_office.service.marketplace.domain.enum.payout_strategy import PayoutStrategy


@attrs.define
class Payout:
    """Organizer credit for an ended event; its existence marks the event as settled"""

    event_id: int
    organizer_id: int
    amount_cents: int
    currency: str
    approved_payment_count: int
    strategy: PayoutStrategy
    id: Optional[int] = None
    created_at: Optional[datetime] = None
