"""
Ticket Command Repository Implementation (SQLAlchemy)
"""

from typing import List, Optional, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError

from box_office.platform.logging.loguru_io import Logger
from box_office.service.marketplace.app.interface.i_ticket_command_repo import (
    ITicketCommandRepo,
)
from box_office.service.marketplace.domain.entity.ticket_entity import Ticket
from box_office.service.marketplace.driven_adapter.model.payment_model import PurchaseModel
from box_office.service.marketplace.driven_adapter.model.ticket_model import TicketModel
from box_office.service.marketplace.driven_adapter.repo.sqlalchemy_repo_base import (
    SqlAlchemyRepoBase,
)


class TicketCommandRepoImpl(SqlAlchemyRepoBase, ITicketCommandRepo):
    @staticmethod
    def _to_entity(model: TicketModel) -> Ticket:
        return Ticket(
            id=model.id,
            event_id=model.event_id,
            user_id=model.user_id,
            ticket_type_id=model.ticket_type_id,
            payment_id=model.payment_id,
            code=model.code,
            price_cents=model.price_cents,
            purchased_at=model.purchased_at,
        )

    @Logger.io
    async def try_create_with_purchase(self, *, ticket: Ticket) -> Optional[Ticket]:
        async with self._get_session() as session:
            try:
                async with session.begin_nested():
                    model = TicketModel(
                        event_id=ticket.event_id,
                        user_id=ticket.user_id,
                        ticket_type_id=ticket.ticket_type_id,
                        payment_id=ticket.payment_id,
                        code=ticket.code,
                        price_cents=ticket.price_cents,
                    )
                    session.add(model)
                    await session.flush()
                    session.add(
                        PurchaseModel(
                            payment_id=ticket.payment_id,
                            ticket_id=model.id,
                            amount_cents=ticket.price_cents,
                        )
                    )
                    await session.flush()
            except IntegrityError as e:
                if 'code' not in str(e.orig).lower():
                    raise
                Logger.base.warning(f'🎟️ [TICKET] Code collision on {ticket.code}, retrying')
                return None
            await session.refresh(model)
            return self._to_entity(model)

    @Logger.io
    async def list_by_user(
        self, *, user_id: int, offset: int, limit: int
    ) -> Tuple[List[Ticket], int]:
        async with self._get_session() as session:
            total = await session.scalar(
                select(func.count()).select_from(TicketModel).where(TicketModel.user_id == user_id)
            )
            result = await session.execute(
                select(TicketModel)
                .where(TicketModel.user_id == user_id)
                .order_by(TicketModel.purchased_at.desc(), TicketModel.id.desc())
                .offset(offset)
                .limit(limit)
            )
            return [self._to_entity(model) for model in result.scalars().all()], total or 0

    @Logger.io
    async def get_by_code(self, *, code: str) -> Optional[Ticket]:
        async with self._get_session() as session:
            model = await session.scalar(select(TicketModel).where(TicketModel.code == code))
            return self._to_entity(model) if model else None

    @Logger.io
    async def list_by_payment(self, *, payment_id: int) -> List[Ticket]:
        async with self._get_session() as session:
            result = await session.execute(
                select(TicketModel)
                .where(TicketModel.payment_id == payment_id)
                .order_by(TicketModel.id)
            )
            return [self._to_entity(model) for model in result.scalars().all()]

    @Logger.io
    async def void_for_payment(self, *, payment_id: int) -> int:
        async with self._get_session() as session:
            await session.execute(
                delete(PurchaseModel)
                .where(PurchaseModel.payment_id == payment_id)
                .execution_options(synchronize_session=False)
            )
            result = await session.execute(
                delete(TicketModel)
                .where(TicketModel.payment_id == payment_id)
                .execution_options(synchronize_session=False)
            )
            voided = result.rowcount or 0  # type: ignore[attr-defined]
            Logger.base.info(f'🎟️ [TICKET] Voided {voided} tickets of payment {payment_id}')
            return voided
