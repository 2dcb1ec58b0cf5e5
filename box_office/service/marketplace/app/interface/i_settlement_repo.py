from abc import ABC, abstractmethod
from typing import Optional

from box_office.service.marketplace.app.dto.settlement_result import EventRevenue
from box_office.service.marketplace.domain.entity.payout_entity import Payout


class ISettlementRepo(ABC):
    @abstractmethod
    async def get_event_revenue(self, *, event_id: int) -> EventRevenue:
        """Net approved revenue of the event, summed directly and through its tickets."""
        pass

    @abstractmethod
    async def get_payout(self, *, event_id: int) -> Optional[Payout]:
        pass

    @abstractmethod
    async def create_payout(self, *, payout: Payout) -> Payout:
        pass
