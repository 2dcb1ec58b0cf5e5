from datetime import datetime
from typing import Optional

import attrs

from box_office.service.marketplace.domain.enum.payment_status import PaymentStatus


@attrs.define
class Payment:
    user_id: int
    payment_method_id: int
    amount_cents: int
    currency: str
    idempotency_key: str
    gateway_charge_id: str
    event_id: Optional[int] = None  # set when every purchased line belongs to one event
    status: PaymentStatus = PaymentStatus.APPROVED
    refunded_cents: int = 0
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def refundable_cents(self) -> int:
        return self.amount_cents - self.refunded_cents


@attrs.define
class Purchase:
    payment_id: int
    ticket_id: int
    amount_cents: int
    id: Optional[int] = None


@attrs.define
class Refund:
    user_id: int
    payment_id: int
    amount_cents: int
    currency: str
    gateway_refund_id: str
    idempotency_key: str
    id: Optional[int] = None
    created_at: Optional[datetime] = None
