"""
Inventory Command Repository Implementation (SQLAlchemy)

decrement() is the only oversell guard across transactions:

    UPDATE ticket_type SET quantity_left = quantity_left - :qty
    WHERE id = :id AND quantity_left >= :qty

Two checkouts racing for the last unit both reach this statement; the database
serializes them and the loser sees rowcount 0.
"""

from typing import List, Optional

from sqlalchemy import case, select, update

from box_office.platform.exception.exceptions import InvalidArgumentError, NotFoundError
from box_office.platform.logging.loguru_io import Logger
from box_office.service.marketplace.app.interface.i_inventory_command_repo import (
    IInventoryCommandRepo,
)
from box_office.service.marketplace.domain.entity.ticket_type_entity import (
    TicketType,
    TicketTypeSpec,
)
from box_office.service.marketplace.driven_adapter.model.ticket_type_model import (
    TicketTypeModel,
)
from box_office.service.marketplace.driven_adapter.repo.sqlalchemy_repo_base import (
    SqlAlchemyRepoBase,
)


class InventoryCommandRepoImpl(SqlAlchemyRepoBase, IInventoryCommandRepo):
    @staticmethod
    def _to_entity(model: TicketTypeModel) -> TicketType:
        return TicketType(
            id=model.id,
            event_id=model.event_id,
            label=model.label,
            price_cents=model.price_cents,
            quantity_total=model.quantity_total,
            quantity_left=model.quantity_left,
            updated_at=model.updated_at,
        )

    async def _fetch(self, *, ticket_type_id: int, for_update: bool) -> Optional[TicketType]:
        async with self._get_session() as session:
            stmt = select(TicketTypeModel).where(TicketTypeModel.id == ticket_type_id)
            if for_update:
                stmt = stmt.with_for_update()
            # Re-reads after a bulk UPDATE must bypass the identity map
            result = await session.execute(stmt.execution_options(populate_existing=True))
            model = result.scalar_one_or_none()
            return self._to_entity(model) if model else None

    @Logger.io
    async def get_by_id(self, *, ticket_type_id: int) -> Optional[TicketType]:
        return await self._fetch(ticket_type_id=ticket_type_id, for_update=False)

    @Logger.io
    async def lock_for_update(self, *, ticket_type_id: int) -> Optional[TicketType]:
        return await self._fetch(ticket_type_id=ticket_type_id, for_update=True)

    @Logger.io
    async def decrement(self, *, ticket_type_id: int, quantity: int) -> bool:
        async with self._get_session() as session:
            result = await session.execute(
                update(TicketTypeModel)
                .where(
                    TicketTypeModel.id == ticket_type_id,
                    TicketTypeModel.quantity_left >= quantity,
                )
                .values(quantity_left=TicketTypeModel.quantity_left - quantity)
                .execution_options(synchronize_session=False)
            )
            decremented = result.rowcount > 0  # type: ignore[attr-defined]
            if not decremented:
                Logger.base.warning(
                    f'🎫 [INVENTORY] Sold out: ticket_type={ticket_type_id} wanted={quantity}'
                )
            return decremented

    @Logger.io
    async def increment(self, *, ticket_type_id: int, quantity: int) -> None:
        if quantity < 0:
            raise InvalidArgumentError('Increment quantity must not be negative')
        async with self._get_session() as session:
            restored = TicketTypeModel.quantity_left + quantity
            await session.execute(
                update(TicketTypeModel)
                .where(TicketTypeModel.id == ticket_type_id)
                .values(
                    quantity_left=case(
                        (
                            restored > TicketTypeModel.quantity_total,
                            TicketTypeModel.quantity_total,
                        ),
                        else_=restored,
                    )
                )
                .execution_options(synchronize_session=False)
            )

    @Logger.io
    async def increase_quantity_only(self, *, ticket_type_id: int, delta: int) -> TicketType:
        if delta < 0:
            raise InvalidArgumentError('Ticket quantity can only be increased')
        async with self._get_session() as session:
            result = await session.execute(
                update(TicketTypeModel)
                .where(TicketTypeModel.id == ticket_type_id)
                .values(
                    quantity_total=TicketTypeModel.quantity_total + delta,
                    quantity_left=TicketTypeModel.quantity_left + delta,
                )
                .execution_options(synchronize_session=False)
            )
            if not result.rowcount:  # type: ignore[attr-defined]
                raise NotFoundError('Ticket type not found')
        ticket_type = await self.get_by_id(ticket_type_id=ticket_type_id)
        assert ticket_type is not None
        return ticket_type

    @Logger.io
    async def update_price(self, *, ticket_type_id: int, price_cents: int) -> TicketType:
        if price_cents <= 0:
            raise InvalidArgumentError('Price must be positive')
        async with self._get_session() as session:
            result = await session.execute(
                update(TicketTypeModel)
                .where(TicketTypeModel.id == ticket_type_id)
                .values(price_cents=price_cents)
                .execution_options(synchronize_session=False)
            )
            if not result.rowcount:  # type: ignore[attr-defined]
                raise NotFoundError('Ticket type not found')
        ticket_type = await self.get_by_id(ticket_type_id=ticket_type_id)
        assert ticket_type is not None
        return ticket_type

    @Logger.io
    async def create_many(
        self, *, event_id: int, specs: List[TicketTypeSpec]
    ) -> List[TicketType]:
        async with self._get_session() as session:
            models = [
                TicketTypeModel(
                    event_id=event_id,
                    label=spec.label,
                    price_cents=spec.price_cents,
                    quantity_total=spec.quantity,
                    quantity_left=spec.quantity,
                )
                for spec in specs
            ]
            session.add_all(models)
            await session.flush()
            for model in models:
                await session.refresh(model)
            return [self._to_entity(model) for model in models]

    @Logger.io
    async def list_by_event(self, *, event_id: int) -> List[TicketType]:
        async with self._get_session() as session:
            result = await session.execute(
                select(TicketTypeModel)
                .where(TicketTypeModel.event_id == event_id)
                .order_by(TicketTypeModel.id)
            )
            return [self._to_entity(model) for model in result.scalars().all()]
