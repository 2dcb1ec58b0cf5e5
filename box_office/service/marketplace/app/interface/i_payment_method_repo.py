from abc import ABC, abstractmethod
from typing import List, Optional

from box_office.service.marketplace.domain.entity.payment_method_entity import PaymentMethod


class IPaymentMethodRepo(ABC):
    @abstractmethod
    async def get_by_gateway_account_id(
        self, *, gateway_account_id: str
    ) -> Optional[PaymentMethod]:
        pass

    @abstractmethod
    async def create(self, *, payment_method: PaymentMethod) -> PaymentMethod:
        pass

    @abstractmethod
    async def link_to_user(self, *, user_id: int, payment_method_id: int) -> None:
        """Raises ConflictError when the card is already linked to this user."""
        pass

    @abstractmethod
    async def get_for_user(
        self, *, user_id: int, payment_method_id: int
    ) -> Optional[PaymentMethod]:
        """The payment method, only if it is linked to `user_id`."""
        pass

    @abstractmethod
    async def list_for_user(self, *, user_id: int) -> List[PaymentMethod]:
        pass
