"""
Event Repository Implementation (SQLAlchemy)
"""

from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import and_, delete, or_, select

from box_office.platform.logging.loguru_io import Logger
from box_office.service.marketplace.app.interface.i_event_repo import IEventRepo
from box_office.service.marketplace.domain.entity.event_entity import Event
from box_office.service.marketplace.driven_adapter.model.cart_model import CartLineModel
from box_office.service.marketplace.driven_adapter.model.event_model import EventModel
from box_office.service.marketplace.driven_adapter.model.payment_model import PurchaseModel
from box_office.service.marketplace.driven_adapter.model.ticket_model import TicketModel
from box_office.service.marketplace.driven_adapter.model.ticket_type_model import (
    TicketTypeModel,
)
from box_office.service.marketplace.driven_adapter.repo.sqlalchemy_repo_base import (
    SqlAlchemyRepoBase,
    to_utc,
)


class EventRepoImpl(SqlAlchemyRepoBase, IEventRepo):
    @staticmethod
    def _to_entity(model: EventModel) -> Event:
        return Event(
            id=model.id,
            organizer_id=model.organizer_id,
            title=model.title,
            start_time=model.start_time,
            end_time=model.end_time,
            created_at=model.created_at,
        )

    @Logger.io
    async def get_by_id(self, *, event_id: int) -> Optional[Event]:
        async with self._get_session() as session:
            model = await session.get(EventModel, event_id)
            return self._to_entity(model) if model else None

    @Logger.io
    async def create(self, *, event: Event) -> Event:
        async with self._get_session() as session:
            model = EventModel(
                organizer_id=event.organizer_id,
                title=event.title,
                start_time=to_utc(event.start_time),
                end_time=to_utc(event.end_time),
            )
            session.add(model)
            await session.flush()
            await session.refresh(model)
            return self._to_entity(model)

    @Logger.io
    async def find_events_for_ticket_types(
        self, *, ticket_type_ids: List[int]
    ) -> Dict[int, Event]:
        if not ticket_type_ids:
            return {}
        async with self._get_session() as session:
            result = await session.execute(
                select(TicketTypeModel.id, EventModel)
                .join(EventModel, EventModel.id == TicketTypeModel.event_id)
                .where(TicketTypeModel.id.in_(ticket_type_ids))
            )
            return {ticket_type_id: self._to_entity(model) for ticket_type_id, model in result}

    @Logger.io
    async def list_expired(
        self, *, now: datetime, limit: int, after: Optional[Tuple[datetime, int]] = None
    ) -> List[Event]:
        stmt = select(EventModel).where(EventModel.end_time < to_utc(now))
        if after is not None:
            after_end_time, after_id = to_utc(after[0]), after[1]
            # Keyset on (end_time, id): events left behind by a failed settlement
            # do not hold back the ones after them
            stmt = stmt.where(
                or_(
                    EventModel.end_time > after_end_time,
                    and_(EventModel.end_time == after_end_time, EventModel.id > after_id),
                )
            )
        async with self._get_session() as session:
            result = await session.execute(
                stmt.order_by(EventModel.end_time, EventModel.id).limit(limit)
            )
            return [self._to_entity(model) for model in result.scalars().all()]

    @Logger.io
    async def delete_cascade(self, *, event_id: int) -> None:
        async with self._get_session() as session:
            ticket_ids = select(TicketModel.id).where(TicketModel.event_id == event_id)
            ticket_type_ids = select(TicketTypeModel.id).where(
                TicketTypeModel.event_id == event_id
            )
            # Children first so foreign keys hold at every step
            for statement in (
                delete(PurchaseModel).where(PurchaseModel.ticket_id.in_(ticket_ids)),
                delete(TicketModel).where(TicketModel.event_id == event_id),
                delete(CartLineModel).where(CartLineModel.ticket_type_id.in_(ticket_type_ids)),
                delete(TicketTypeModel).where(TicketTypeModel.event_id == event_id),
                delete(EventModel).where(EventModel.id == event_id),
            ):
                await session.execute(statement.execution_options(synchronize_session=False))
            Logger.base.info(f'🗑️ [EVENT] Deleted event {event_id} and its children')
