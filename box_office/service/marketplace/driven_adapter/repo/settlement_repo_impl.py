"""
Settlement Repository Implementation (SQLAlchemy)

Revenue of an event is aggregated two ways because payments reach an event by
two paths: payment.event_id (set when a checkout bought tickets of a single
event) and purchase -> ticket.event_id (always present). A mixed-event checkout
only shows up through the second path. On that path each payment counts for its
ticket prices of the event, capped at what is left of the payment after refunds.
"""

from typing import Optional

from sqlalchemy import case, func, select

from box_office.platform.logging.loguru_io import Logger
from box_office.service.marketplace.app.dto.settlement_result import EventRevenue
from box_office.service.marketplace.app.interface.i_settlement_repo import ISettlementRepo
from box_office.service.marketplace.domain.entity.payout_entity import Payout
from box_office.service.marketplace.domain.enum.payment_status import PaymentStatus
from box_office.service.marketplace.domain.enum.payout_strategy import PayoutStrategy
from box_office.service.marketplace.driven_adapter.model.payment_model import (
    PaymentModel,
    PurchaseModel,
)
from box_office.service.marketplace.driven_adapter.model.payout_model import PayoutModel
from box_office.service.marketplace.driven_adapter.model.ticket_model import TicketModel
from box_office.service.marketplace.driven_adapter.repo.sqlalchemy_repo_base import (
    SqlAlchemyRepoBase,
)


class SettlementRepoImpl(SqlAlchemyRepoBase, ISettlementRepo):
    @staticmethod
    def _to_entity(model: PayoutModel) -> Payout:
        return Payout(
            id=model.id,
            event_id=model.event_id,
            organizer_id=model.organizer_id,
            amount_cents=model.amount_cents,
            currency=model.currency,
            approved_payment_count=model.approved_payment_count,
            strategy=PayoutStrategy(model.strategy),
            created_at=model.created_at,
        )

    @Logger.io
    async def get_event_revenue(self, *, event_id: int) -> EventRevenue:
        async with self._get_session() as session:
            direct = (
                await session.execute(
                    select(
                        func.coalesce(
                            func.sum(PaymentModel.amount_cents - PaymentModel.refunded_cents), 0
                        ),
                        func.count(PaymentModel.id),
                    ).where(
                        PaymentModel.event_id == event_id,
                        PaymentModel.status == PaymentStatus.APPROVED.value,
                    )
                )
            ).one()

            per_payment = (
                select(
                    PurchaseModel.payment_id.label('payment_id'),
                    func.sum(PurchaseModel.amount_cents).label('ticket_cents'),
                )
                .join(TicketModel, TicketModel.id == PurchaseModel.ticket_id)
                .where(TicketModel.event_id == event_id)
                .group_by(PurchaseModel.payment_id)
                .subquery()
            )
            # A payment never contributes more than what is left of it after refunds
            kept = PaymentModel.amount_cents - PaymentModel.refunded_cents
            via_tickets = (
                await session.execute(
                    select(
                        func.coalesce(
                            func.sum(
                                case(
                                    (per_payment.c.ticket_cents < kept, per_payment.c.ticket_cents),
                                    else_=kept,
                                )
                            ),
                            0,
                        ),
                        func.count(PaymentModel.id),
                    )
                    .select_from(per_payment)
                    .join(PaymentModel, PaymentModel.id == per_payment.c.payment_id)
                    .where(PaymentModel.status == PaymentStatus.APPROVED.value)
                )
            ).one()

            return EventRevenue(
                event_id=event_id,
                direct_cents=int(direct[0]),
                via_tickets_cents=int(via_tickets[0]),
                direct_payment_count=int(direct[1]),
                via_tickets_payment_count=int(via_tickets[1]),
            )

    @Logger.io
    async def get_payout(self, *, event_id: int) -> Optional[Payout]:
        async with self._get_session() as session:
            model = await session.scalar(
                select(PayoutModel).where(PayoutModel.event_id == event_id)
            )
            return self._to_entity(model) if model else None

    @Logger.io
    async def create_payout(self, *, payout: Payout) -> Payout:
        async with self._get_session() as session:
            model = PayoutModel(
                event_id=payout.event_id,
                organizer_id=payout.organizer_id,
                amount_cents=payout.amount_cents,
                currency=payout.currency,
                approved_payment_count=payout.approved_payment_count,
                strategy=payout.strategy.value,
            )
            session.add(model)
            await session.flush()
            await session.refresh(model)
            return self._to_entity(model)
