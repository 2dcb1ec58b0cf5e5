"""
Event Repository Interface

Events are owned by an external catalogue; this port covers the lookups the
marketplace needs (purchase window, organizer, settlement) plus the cascade
delete run when an event is settled or cancelled.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from box_office.service.marketplace.domain.entity.event_entity import Event


class IEventRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, event_id: int) -> Optional[Event]:
        pass

    @abstractmethod
    async def create(self, *, event: Event) -> Event:
        pass

    @abstractmethod
    async def find_events_for_ticket_types(
        self, *, ticket_type_ids: List[int]
    ) -> Dict[int, Event]:
        """Map each ticket type id to its owning event; unknown ids are omitted."""
        pass

    @abstractmethod
    async def list_expired(
        self, *, now: datetime, limit: int, after: Optional[Tuple[datetime, int]] = None
    ) -> List[Event]:
        """Events whose end_time is before `now`, ordered by (end_time, id).

        `after` is the (end_time, id) of the last event already seen; only later
        rows are returned.
        """
        pass

    @abstractmethod
    async def delete_cascade(self, *, event_id: int) -> None:
        """Delete purchases, tickets, cart lines, ticket types and the event itself."""
        pass
