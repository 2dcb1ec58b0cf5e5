from typing import Dict, List

import attrs

from box_office.service.marketplace.domain.enum.payout_strategy import PayoutStrategy


@attrs.define(frozen=True)
class EventRevenue:
    """Approved revenue of one event, aggregated two ways"""

    event_id: int
    direct_cents: int
    via_tickets_cents: int
    direct_payment_count: int
    via_tickets_payment_count: int

    @property
    def strategy(self) -> PayoutStrategy:
        # Payments carrying event_id also own tickets of that event, so the two figures
        # overlap; the larger one is authoritative and they are never added together
        if self.via_tickets_cents > self.direct_cents:
            return PayoutStrategy.VIA_TICKETS
        return PayoutStrategy.DIRECT

    @property
    def amount_cents(self) -> int:
        return max(self.direct_cents, self.via_tickets_cents)

    @property
    def approved_payment_count(self) -> int:
        if self.strategy is PayoutStrategy.VIA_TICKETS:
            return self.via_tickets_payment_count
        return self.direct_payment_count


@attrs.define(frozen=True)
class PayoutSummary:
    event_id: int
    organizer_id: int
    amount_cents: int
    currency: str
    approved_payment_count: int
    strategy: PayoutStrategy
    direct_cents: int
    via_tickets_cents: int


@attrs.define
class SweepReport:
    settled_event_ids: List[int] = attrs.field(factory=list)
    deleted_event_ids: List[int] = attrs.field(factory=list)
    failed: Dict[int, str] = attrs.field(factory=dict)

    @property
    def processed_count(self) -> int:
        return len(self.deleted_event_ids) + len(self.failed)
