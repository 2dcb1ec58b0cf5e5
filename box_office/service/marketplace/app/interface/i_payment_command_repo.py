"""
Payment Command Repository Interface

Payment and Refund rows are the system of record for money movement; the
gateway's own ledger is advisory.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from box_office.service.marketplace.domain.entity.payment_entity import Payment, Refund


class IPaymentCommandRepo(ABC):
    @abstractmethod
    async def create(self, *, payment: Payment) -> Payment:
        pass

    @abstractmethod
    async def get_by_id(self, *, payment_id: int) -> Optional[Payment]:
        pass

    @abstractmethod
    async def lock_for_update(self, *, payment_id: int) -> Optional[Payment]:
        pass

    @abstractmethod
    async def record_refund(self, *, refund: Refund) -> Payment:
        """Insert the refund and roll its amount into the payment's refunded total."""
        pass

    @abstractmethod
    async def get_refund_payment_id(self, *, idempotency_key: str) -> Optional[int]:
        """Payment already refunded under this key, if any."""
        pass

    @abstractmethod
    async def list_approved_for_event(self, *, event_id: int) -> List[Payment]:
        """Approved payments tied to the event directly or through its tickets, deduplicated."""
        pass

    @abstractmethod
    async def get_gateway_account_id(self, *, payment_method_id: int) -> Optional[str]:
        pass
