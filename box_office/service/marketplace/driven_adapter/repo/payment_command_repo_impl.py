"""
Payment Command Repository Implementation (SQLAlchemy)
"""

from typing import List, Optional

from sqlalchemy import or_, select

from box_office.platform.exception.exceptions import ConflictError, NotFoundError
from box_office.platform.logging.loguru_io import Logger
from box_office.service.marketplace.app.interface.i_payment_command_repo import (
    IPaymentCommandRepo,
)
from box_office.service.marketplace.domain.entity.payment_entity import Payment, Refund
from box_office.service.marketplace.domain.enum.payment_status import PaymentStatus
from box_office.service.marketplace.driven_adapter.model.payment_method_model import (
    PaymentMethodModel,
)
from box_office.service.marketplace.driven_adapter.model.payment_model import (
    PaymentModel,
    PurchaseModel,
    RefundModel,
)
from box_office.service.marketplace.driven_adapter.model.ticket_model import TicketModel
from box_office.service.marketplace.driven_adapter.repo.sqlalchemy_repo_base import (
    SqlAlchemyRepoBase,
)


class PaymentCommandRepoImpl(SqlAlchemyRepoBase, IPaymentCommandRepo):
    @staticmethod
    def _to_entity(model: PaymentModel) -> Payment:
        return Payment(
            id=model.id,
            user_id=model.user_id,
            payment_method_id=model.payment_method_id,
            event_id=model.event_id,
            amount_cents=model.amount_cents,
            currency=model.currency,
            status=PaymentStatus(model.status),
            refunded_cents=model.refunded_cents,
            gateway_charge_id=model.gateway_charge_id,
            idempotency_key=model.idempotency_key,
            created_at=model.created_at,
        )

    @Logger.io
    async def create(self, *, payment: Payment) -> Payment:
        async with self._get_session() as session:
            model = PaymentModel(
                user_id=payment.user_id,
                payment_method_id=payment.payment_method_id,
                event_id=payment.event_id,
                amount_cents=payment.amount_cents,
                currency=payment.currency,
                status=payment.status.value,
                refunded_cents=payment.refunded_cents,
                gateway_charge_id=payment.gateway_charge_id,
                idempotency_key=payment.idempotency_key,
            )
            session.add(model)
            await session.flush()
            await session.refresh(model)
            return self._to_entity(model)

    async def _fetch(self, *, payment_id: int, for_update: bool) -> Optional[Payment]:
        async with self._get_session() as session:
            stmt = select(PaymentModel).where(PaymentModel.id == payment_id)
            if for_update:
                stmt = stmt.with_for_update()
            result = await session.execute(stmt.execution_options(populate_existing=True))
            model = result.scalar_one_or_none()
            return self._to_entity(model) if model else None

    @Logger.io
    async def get_by_id(self, *, payment_id: int) -> Optional[Payment]:
        return await self._fetch(payment_id=payment_id, for_update=False)

    @Logger.io
    async def lock_for_update(self, *, payment_id: int) -> Optional[Payment]:
        return await self._fetch(payment_id=payment_id, for_update=True)

    @Logger.io
    async def record_refund(self, *, refund: Refund) -> Payment:
        async with self._get_session() as session:
            payment = await session.get(PaymentModel, refund.payment_id, populate_existing=True)
            if payment is None:
                raise NotFoundError('Payment not found')
            if payment.refunded_cents + refund.amount_cents > payment.amount_cents:
                raise ConflictError('Refund exceeds the remaining refundable amount')

            session.add(
                RefundModel(
                    user_id=refund.user_id,
                    payment_id=refund.payment_id,
                    amount_cents=refund.amount_cents,
                    currency=refund.currency,
                    gateway_refund_id=refund.gateway_refund_id,
                    idempotency_key=refund.idempotency_key,
                )
            )
            payment.refunded_cents += refund.amount_cents
            if payment.refunded_cents == payment.amount_cents:
                payment.status = PaymentStatus.REFUNDED.value
            await session.flush()
            return self._to_entity(payment)

    @Logger.io
    async def get_refund_payment_id(self, *, idempotency_key: str) -> Optional[int]:
        async with self._get_session() as session:
            return await session.scalar(
                select(RefundModel.payment_id).where(RefundModel.idempotency_key == idempotency_key)
            )

    @Logger.io
    async def list_approved_for_event(self, *, event_id: int) -> List[Payment]:
        async with self._get_session() as session:
            via_tickets = (
                select(PurchaseModel.payment_id)
                .join(TicketModel, TicketModel.id == PurchaseModel.ticket_id)
                .where(TicketModel.event_id == event_id)
            )
            result = await session.execute(
                select(PaymentModel)
                .where(
                    PaymentModel.status == PaymentStatus.APPROVED.value,
                    or_(PaymentModel.event_id == event_id, PaymentModel.id.in_(via_tickets)),
                )
                .order_by(PaymentModel.id)
            )
            return [self._to_entity(model) for model in result.scalars().all()]

    @Logger.io
    async def get_gateway_account_id(self, *, payment_method_id: int) -> Optional[str]:
        async with self._get_session() as session:
            return await session.scalar(
                select(PaymentMethodModel.gateway_account_id).where(
                    PaymentMethodModel.id == payment_method_id
                )
            )
