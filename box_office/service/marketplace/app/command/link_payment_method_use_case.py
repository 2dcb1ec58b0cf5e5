from typing import Callable

import anyio

from box_office.platform.database.unit_of_work import AbstractUnitOfWork
from box_office.platform.exception.exceptions import ConflictError, GatewayDeclinedError
from box_office.platform.exception.storage_error import storage_error_as_internal
from box_office.platform.logging.loguru_io import Logger
from box_office.service.marketplace.app.dto.gateway_result import GatewayAccount
from box_office.service.marketplace.app.interface.i_payment_gateway import IPaymentGateway
from box_office.service.marketplace.domain.entity.payment_method_entity import PaymentMethod
from box_office.service.marketplace.domain.enum.decline_reason import DeclineReason
from box_office.service.marketplace.domain.value_object.card import CardDetails


class LinkPaymentMethodUseCase:
    """Verify a card with the gateway and save it to the user's wallet"""

    def __init__(
        self,
        *,
        uow_factory: Callable[[], AbstractUnitOfWork],
        payment_gateway: IPaymentGateway,
        gateway_timeout_seconds: float,
    ) -> None:
        self.uow_factory = uow_factory
        self.payment_gateway = payment_gateway
        self.gateway_timeout_seconds = gateway_timeout_seconds

    @Logger.io
    @storage_error_as_internal
    async def link(
        self, *, user_id: int, card: CardDetails, allow_existing: bool = False
    ) -> PaymentMethod:
        """
        Raises ConflictError when the card is already in this user's wallet,
        unless allow_existing is set (checkout with a card typed in again).
        """
        try:
            with anyio.fail_after(self.gateway_timeout_seconds):
                account = await self.payment_gateway.verify(card=card)
        except TimeoutError:
            raise GatewayDeclinedError(DeclineReason.TIMEOUT, 'Card verification timed out')

        async with self.uow_factory() as uow:
            payment_method = await self._get_or_create(uow=uow, account=account)
            try:
                await uow.payment_method_repo.link_to_user(
                    user_id=user_id, payment_method_id=payment_method.id
                )
            except ConflictError:
                if not allow_existing:
                    raise
            await uow.commit()

        Logger.base.info(f'💳 [WALLET] user={user_id} linked card ****{payment_method.last4}')
        return payment_method

    @staticmethod
    async def _get_or_create(*, uow: AbstractUnitOfWork, account: GatewayAccount) -> PaymentMethod:
        payment_method = await uow.payment_method_repo.get_by_gateway_account_id(
            gateway_account_id=account.account_id
        )
        if payment_method:
            return payment_method
        return await uow.payment_method_repo.create(
            payment_method=PaymentMethod(
                gateway_account_id=account.account_id,
                holder_name=account.holder_name,
                last4=account.last4,
                exp_month=account.exp_month,
                exp_year=account.exp_year,
                currency=account.currency,
            )
        )
