"""
Payment Method Repository Implementation (SQLAlchemy)
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from box_office.platform.exception.exceptions import ConflictError
from box_office.platform.logging.loguru_io import Logger
from box_office.service.marketplace.app.interface.i_payment_method_repo import (
    IPaymentMethodRepo,
)
from box_office.service.marketplace.domain.entity.payment_method_entity import PaymentMethod
from box_office.service.marketplace.driven_adapter.model.payment_method_model import (
    PaymentMethodModel,
    UserPaymentMethodModel,
)
from box_office.service.marketplace.driven_adapter.repo.sqlalchemy_repo_base import (
    SqlAlchemyRepoBase,
)


class PaymentMethodRepoImpl(SqlAlchemyRepoBase, IPaymentMethodRepo):
    @staticmethod
    def _to_entity(model: PaymentMethodModel) -> PaymentMethod:
        return PaymentMethod(
            id=model.id,
            gateway_account_id=model.gateway_account_id,
            holder_name=model.holder_name,
            last4=model.last4,
            exp_month=model.exp_month,
            exp_year=model.exp_year,
            currency=model.currency,
        )

    @Logger.io
    async def get_by_gateway_account_id(
        self, *, gateway_account_id: str
    ) -> Optional[PaymentMethod]:
        async with self._get_session() as session:
            model = await session.scalar(
                select(PaymentMethodModel).where(
                    PaymentMethodModel.gateway_account_id == gateway_account_id
                )
            )
            return self._to_entity(model) if model else None

    @Logger.io
    async def create(self, *, payment_method: PaymentMethod) -> PaymentMethod:
        async with self._get_session() as session:
            model = PaymentMethodModel(
                gateway_account_id=payment_method.gateway_account_id,
                holder_name=payment_method.holder_name,
                last4=payment_method.last4,
                exp_month=payment_method.exp_month,
                exp_year=payment_method.exp_year,
                currency=payment_method.currency,
            )
            session.add(model)
            await session.flush()
            return self._to_entity(model)

    @Logger.io
    async def link_to_user(self, *, user_id: int, payment_method_id: int) -> None:
        async with self._get_session() as session:
            try:
                async with session.begin_nested():
                    session.add(
                        UserPaymentMethodModel(user_id=user_id, payment_method_id=payment_method_id)
                    )
                    await session.flush()
            except IntegrityError:
                raise ConflictError('Payment method already linked to this account')

    @Logger.io
    async def get_for_user(
        self, *, user_id: int, payment_method_id: int
    ) -> Optional[PaymentMethod]:
        async with self._get_session() as session:
            model = await session.scalar(
                select(PaymentMethodModel)
                .join(
                    UserPaymentMethodModel,
                    UserPaymentMethodModel.payment_method_id == PaymentMethodModel.id,
                )
                .where(
                    UserPaymentMethodModel.user_id == user_id,
                    PaymentMethodModel.id == payment_method_id,
                )
            )
            return self._to_entity(model) if model else None

    @Logger.io
    async def list_for_user(self, *, user_id: int) -> List[PaymentMethod]:
        async with self._get_session() as session:
            result = await session.execute(
                select(PaymentMethodModel)
                .join(
                    UserPaymentMethodModel,
                    UserPaymentMethodModel.payment_method_id == PaymentMethodModel.id,
                )
                .where(UserPaymentMethodModel.user_id == user_id)
                .order_by(PaymentMethodModel.id)
            )
            return [self._to_entity(model) for model in result.scalars().all()]
