from datetime import datetime, timedelta, timezone
from typing import List, Tuple

from sqlalchemy import func, select, update

from box_office.platform.config.di import Container
from box_office.platform.database.orm_db_setting import Database
from box_office.service.marketplace.domain.entity.event_entity import Event
from box_office.service.marketplace.domain.entity.payment_method_entity import PaymentMethod
from box_office.service.marketplace.domain.entity.ticket_type_entity import (
    TicketType,
    TicketTypeSpec,
)
from box_office.service.marketplace.domain.value_object.card import CardDetails
from box_office.service.marketplace.driven_adapter.model.event_model import EventModel
from tests.service.marketplace.builders import VALID_CARD_NUMBER


ORGANIZER_ID = 99
BUYER_ID = 1
OTHER_BUYER_ID = 2
CVV = '123'


async def create_event(
    container: Container,
    *,
    ticket_types: List[Tuple[str, int, int]],
    starts_in: timedelta = timedelta(days=7),
    title: str = 'Spring Concert',
) -> Tuple[Event, List[TicketType]]:
    """ticket_types: (label, price_cents, quantity)"""
    start = datetime.now(timezone.utc) + starts_in
    return await container.create_event_with_ticket_types_use_case().create(
        organizer_id=ORGANIZER_ID,
        title=title,
        start_time=start,
        end_time=start + timedelta(hours=3),
        ticket_types=[
            TicketTypeSpec(label=label, price_cents=price, quantity=quantity)
            for label, price, quantity in ticket_types
        ],
    )


def make_card(*, number: str = VALID_CARD_NUMBER, cvv: str = CVV) -> CardDetails:
    return CardDetails.create(
        number=number, holder_name='Ada Lovelace', cvv=cvv, exp_month=12, exp_year=2040
    )


async def link_card(
    container: Container, *, user_id: int, number: str = VALID_CARD_NUMBER
) -> PaymentMethod:
    return await container.link_payment_method_use_case().link(
        user_id=user_id, card=make_card(number=number)
    )


async def get_ticket_type(container: Container, *, ticket_type_id: int) -> TicketType | None:
    async with container.unit_of_work() as uow:
        return await uow.inventory_repo.get_by_id(ticket_type_id=ticket_type_id)


async def move_event_to_past(database: Database, *, event_id: int) -> None:
    """Rewrite the event window so it started two days ago and ended yesterday."""
    now = datetime.now(timezone.utc)
    async with database.session() as session:
        await session.execute(
            update(EventModel)
            .where(EventModel.id == event_id)
            .values(start_time=now - timedelta(days=2), end_time=now - timedelta(days=1))
        )
        await session.commit()


async def count_rows(database: Database, model, *criteria) -> int:
    async with database.session() as session:
        return await session.scalar(select(func.count()).select_from(model).where(*criteria))
