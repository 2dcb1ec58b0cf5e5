"""
Cart Command Repository Implementation (SQLAlchemy)
"""

from typing import Any, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from box_office.platform.exception.exceptions import NotFoundError
from box_office.platform.logging.loguru_io import Logger
from box_office.service.marketplace.app.interface.i_cart_command_repo import ICartCommandRepo
from box_office.service.marketplace.domain.entity.cart_entity import Cart, CartLine
from box_office.service.marketplace.driven_adapter.model.cart_model import (
    CartLineModel,
    CartModel,
)
from box_office.service.marketplace.driven_adapter.repo.sqlalchemy_repo_base import (
    SqlAlchemyRepoBase,
)


class CartCommandRepoImpl(SqlAlchemyRepoBase, ICartCommandRepo):
    @staticmethod
    def _line_to_entity(model: CartLineModel) -> CartLine:
        return CartLine(
            id=model.id,
            cart_id=model.cart_id,
            ticket_type_id=model.ticket_type_id,
            quantity=model.quantity,
            unit_price_cents_snapshot=model.unit_price_cents_snapshot,
        )

    @Logger.io
    async def get_or_create(self, *, user_id: int) -> Cart:
        async with self._get_session() as session:
            cart_id = await session.scalar(
                select(CartModel.id).where(CartModel.owner_user_id == user_id)
            )
            if cart_id is None:
                try:
                    async with session.begin_nested():
                        model = CartModel(owner_user_id=user_id)
                        session.add(model)
                        await session.flush()
                    cart_id = model.id
                except IntegrityError:
                    # A concurrent request created it first
                    cart_id = await session.scalar(
                        select(CartModel.id).where(CartModel.owner_user_id == user_id)
                    )
                Logger.base.info(f'🛒 [CART] Created cart {cart_id} for user {user_id}')

            result = await session.execute(
                select(CartLineModel)
                .where(CartLineModel.cart_id == cart_id)
                .order_by(CartLineModel.ticket_type_id)
                .execution_options(populate_existing=True)
            )
            lines = [self._line_to_entity(model) for model in result.scalars().all()]
            return Cart(id=cart_id, owner_user_id=user_id, lines=lines)

    @Logger.io
    async def get_line(self, *, cart_id: int, ticket_type_id: int) -> Optional[CartLine]:
        async with self._get_session() as session:
            result = await session.execute(
                select(CartLineModel)
                .where(
                    CartLineModel.cart_id == cart_id,
                    CartLineModel.ticket_type_id == ticket_type_id,
                )
                .execution_options(populate_existing=True)
            )
            model = result.scalar_one_or_none()
            return self._line_to_entity(model) if model else None

    @Logger.io
    async def increment_line(
        self, *, cart_id: int, ticket_type_id: int, quantity: int, unit_price_cents: int
    ) -> CartLine:
        return await self._write_line(
            cart_id=cart_id,
            ticket_type_id=ticket_type_id,
            new_quantity=CartLineModel.quantity + quantity,
            insert_quantity=quantity,
            unit_price_cents=unit_price_cents,
        )

    @Logger.io
    async def upsert_line(
        self, *, cart_id: int, ticket_type_id: int, quantity: int, unit_price_cents: int
    ) -> CartLine:
        return await self._write_line(
            cart_id=cart_id,
            ticket_type_id=ticket_type_id,
            new_quantity=quantity,
            insert_quantity=quantity,
            unit_price_cents=unit_price_cents,
        )

    async def _write_line(
        self,
        *,
        cart_id: int,
        ticket_type_id: int,
        new_quantity: Any,
        insert_quantity: int,
        unit_price_cents: int,
    ) -> CartLine:
        """UPDATE the line; INSERT it when absent, and fall back to the UPDATE when a
        concurrent request inserted it first."""
        if not await self._update_quantity(
            cart_id=cart_id, ticket_type_id=ticket_type_id, value=new_quantity
        ):
            inserted = await self._insert_line(
                cart_id=cart_id,
                ticket_type_id=ticket_type_id,
                quantity=insert_quantity,
                unit_price_cents=unit_price_cents,
            )
            if not inserted:
                await self._update_quantity(
                    cart_id=cart_id, ticket_type_id=ticket_type_id, value=new_quantity
                )
        line = await self.get_line(cart_id=cart_id, ticket_type_id=ticket_type_id)
        if line is None:
            raise NotFoundError('Cart line not found')
        return line

    async def _update_quantity(self, *, cart_id: int, ticket_type_id: int, value: Any) -> bool:
        async with self._get_session() as session:
            result = await session.execute(
                update(CartLineModel)
                .where(
                    CartLineModel.cart_id == cart_id,
                    CartLineModel.ticket_type_id == ticket_type_id,
                )
                .values(quantity=value)
                .execution_options(synchronize_session=False)
            )
            return bool(result.rowcount)  # type: ignore[attr-defined]

    async def _insert_line(
        self, *, cart_id: int, ticket_type_id: int, quantity: int, unit_price_cents: int
    ) -> bool:
        """False when a concurrent request inserted the same line first."""
        async with self._get_session() as session:
            try:
                async with session.begin_nested():
                    session.add(
                        CartLineModel(
                            cart_id=cart_id,
                            ticket_type_id=ticket_type_id,
                            quantity=quantity,
                            unit_price_cents_snapshot=unit_price_cents,
                        )
                    )
                    await session.flush()
            except IntegrityError:
                Logger.base.info(
                    f'🛒 [CART] Line cart={cart_id} ticket_type={ticket_type_id} '
                    'inserted concurrently, updating instead'
                )
                return False
            return True

    @Logger.io
    async def delete_lines(self, *, cart_id: int, ticket_type_ids: List[int]) -> int:
        if not ticket_type_ids:
            return 0
        async with self._get_session() as session:
            result = await session.execute(
                delete(CartLineModel)
                .where(
                    CartLineModel.cart_id == cart_id,
                    CartLineModel.ticket_type_id.in_(ticket_type_ids),
                )
                .execution_options(synchronize_session=False)
            )
            return result.rowcount  # type: ignore[attr-defined]

    @Logger.io
    async def clear(self, *, cart_id: int) -> int:
        async with self._get_session() as session:
            result = await session.execute(
                delete(CartLineModel)
                .where(CartLineModel.cart_id == cart_id)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount  # type: ignore[attr-defined]
