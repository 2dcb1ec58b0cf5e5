"""
Unit of Work Pattern - one database session shared by every marketplace repository

Architecture:
- UoW owns the session lifecycle (opened on enter, closed on exit)
- UoW owns commit/rollback; leaving the block without commit() rolls back
- Repositories receive the shared session so a use case can span several of them
  inside one transaction (checkout touches cart, inventory, payment and ticket rows)
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING, Callable

from sqlalchemy.ext.asyncio import AsyncSession


if TYPE_CHECKING:
    from box_office.service.marketplace.app.interface.i_cart_command_repo import ICartCommandRepo
    from box_office.service.marketplace.app.interface.i_event_repo import IEventRepo
    from box_office.service.marketplace.app.interface.i_inventory_command_repo import (
        IInventoryCommandRepo,
    )
    from box_office.service.marketplace.app.interface.i_payment_command_repo import (
        IPaymentCommandRepo,
    )
    from box_office.service.marketplace.app.interface.i_payment_method_repo import (
        IPaymentMethodRepo,
    )
    from box_office.service.marketplace.app.interface.i_settlement_repo import ISettlementRepo
    from box_office.service.marketplace.app.interface.i_ticket_command_repo import (
        ITicketCommandRepo,
    )


class AbstractUnitOfWork(abc.ABC):
    """
    Abstract Unit of Work for the marketplace

    Usage:
        async with uow_factory() as uow:
            ticket_type = await uow.inventory_repo.lock_for_update(ticket_type_id=1)
            await uow.commit()
    """

    event_repo: IEventRepo
    inventory_repo: IInventoryCommandRepo
    cart_repo: ICartCommandRepo
    payment_method_repo: IPaymentMethodRepo
    payment_repo: IPaymentCommandRepo
    ticket_repo: ITicketCommandRepo
    settlement_repo: ISettlementRepo

    async def __aenter__(self) -> AbstractUnitOfWork:
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    async def commit(self):
        """Commit the transaction"""
        await self._commit()

    @abc.abstractmethod
    async def _commit(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def rollback(self) -> None:
        raise NotImplementedError


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    """
    SQLAlchemy implementation of Unit of Work

    Usage in use case:
        async with self.uow_factory() as uow:
            await uow.cart_repo.upsert_line(...)
            await uow.commit()
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self.session_factory = session_factory
        self.session: AsyncSession | None = None

    async def __aenter__(self):
        from box_office.service.marketplace.driven_adapter.repo.cart_command_repo_impl import (
            CartCommandRepoImpl,
        )
        from box_office.service.marketplace.driven_adapter.repo.event_repo_impl import (
            EventRepoImpl,
        )
        from box_office.service.marketplace.driven_adapter.repo.inventory_command_repo_impl import (
            InventoryCommandRepoImpl,
        )
        from box_office.service.marketplace.driven_adapter.repo.payment_command_repo_impl import (
            PaymentCommandRepoImpl,
        )
        from box_office.service.marketplace.driven_adapter.repo.payment_method_repo_impl import (
            PaymentMethodRepoImpl,
        )
        from box_office.service.marketplace.driven_adapter.repo.settlement_repo_impl import (
            SettlementRepoImpl,
        )
        from box_office.service.marketplace.driven_adapter.repo.ticket_command_repo_impl import (
            TicketCommandRepoImpl,
        )

        self.session = self.session_factory()

        # Create repositories with shared session
        self.event_repo = EventRepoImpl()
        self.event_repo.session = self.session
        self.inventory_repo = InventoryCommandRepoImpl()
        self.inventory_repo.session = self.session
        self.cart_repo = CartCommandRepoImpl()
        self.cart_repo.session = self.session
        self.payment_method_repo = PaymentMethodRepoImpl()
        self.payment_method_repo.session = self.session
        self.payment_repo = PaymentCommandRepoImpl()
        self.payment_repo.session = self.session
        self.ticket_repo = TicketCommandRepoImpl()
        self.ticket_repo.session = self.session
        self.settlement_repo = SettlementRepoImpl()
        self.settlement_repo.session = self.session

        return await super().__aenter__()

    async def __aexit__(self, *args):
        try:
            await super().__aexit__(*args)
        finally:
            if self.session is not None:
                await self.session.close()
                self.session = None

    async def _commit(self):
        assert self.session is not None, 'commit() called outside of "async with uow"'
        await self.session.commit()

    async def rollback(self) -> None:
        if self.session is not None:
            await self.session.rollback()
