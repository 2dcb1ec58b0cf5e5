"""
Payment Gateway Interface

Three independent operations keyed by an opaque account id. Authorizations and
refunds never move the account balance; callers record money movement in their
own Payment/Refund tables.
"""

from abc import ABC, abstractmethod

from box_office.service.marketplace.app.dto.gateway_result import (
    AuthorizationResult,
    GatewayAccount,
    RefundResult,
)
from box_office.service.marketplace.domain.value_object.card import CardDetails


class IPaymentGateway(ABC):
    @abstractmethod
    async def verify(self, *, card: CardDetails) -> GatewayAccount:
        """Look up or open the account for this card."""
        pass

    @abstractmethod
    async def authorize(
        self,
        *,
        account_id: str,
        amount_cents: int,
        currency: str,
        cvv: str,
        idempotency_key: str,
    ) -> AuthorizationResult:
        pass

    @abstractmethod
    async def refund(
        self, *, account_id: str, amount_cents: int, idempotency_key: str
    ) -> RefundResult:
        pass
