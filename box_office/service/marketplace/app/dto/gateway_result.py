from typing import Optional

import attrs

from box_office.service.marketplace.domain.enum.decline_reason import DeclineReason


@attrs.define(frozen=True)
class GatewayAccount:
    account_id: str
    holder_name: str
    last4: str
    exp_month: int
    exp_year: int
    currency: str
    balance_cents: int  # advisory only


@attrs.define(frozen=True)
class AuthorizationResult:
    approved: bool
    amount_cents: int
    currency: str
    charge_id: Optional[str] = None
    reason: Optional[DeclineReason] = None

    @classmethod
    def declined(
        cls, *, reason: DeclineReason, amount_cents: int, currency: str
    ) -> 'AuthorizationResult':
        return cls(approved=False, amount_cents=amount_cents, currency=currency, reason=reason)


@attrs.define(frozen=True)
class RefundResult:
    refunded: bool
    amount_cents: int
    refund_id: Optional[str] = None
    reason: Optional[DeclineReason] = None
