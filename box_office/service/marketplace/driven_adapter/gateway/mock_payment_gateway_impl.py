"""
Mock Payment Gateway

Simulates a card processor on top of two gateway-owned tables:
- gateway_account: one row per card, keyed by the card fingerprint
- gateway_ledger_entry: every approved charge and every refund, unique per idempotency key

Simulation boundary:
- The account balance is advisory. It is compared against the charge amount on
  authorize() but never decremented or credited; the marketplace Payment/Refund
  tables are the system of record for money movement.
- The gateway runs in its own session and commits independently of the caller,
  the same way a remote processor would.
"""

from typing import Any, Callable, Dict, Optional

import orjson
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from uuid_utils import uuid7

from box_office.platform.exception.exceptions import GatewayDeclinedError
from box_office.platform.logging.loguru_io import Logger
from box_office.service.marketplace.app.dto.gateway_result import (
    AuthorizationResult,
    GatewayAccount,
    RefundResult,
)
from box_office.service.marketplace.app.interface.i_payment_gateway import IPaymentGateway
from box_office.service.marketplace.domain.enum.decline_reason import DeclineReason
from box_office.service.marketplace.domain.enum.ledger_entry_kind import LedgerEntryKind
from box_office.service.marketplace.domain.value_object.card import CardDetails
from box_office.service.marketplace.driven_adapter.model.gateway_model import (
    GatewayAccountModel,
    GatewayLedgerEntryModel,
)


class MockPaymentGatewayImpl(IPaymentGateway):
    def __init__(
        self,
        *,
        session_factory: Callable[[], AsyncSession],
        initial_balance_cents: int,
        currency: str,
    ) -> None:
        self.session_factory = session_factory
        self.initial_balance_cents = initial_balance_cents
        self.currency = currency

    @staticmethod
    def _to_account(model: GatewayAccountModel) -> GatewayAccount:
        return GatewayAccount(
            account_id=model.id,
            holder_name=model.holder_name,
            last4=model.last4,
            exp_month=model.exp_month,
            exp_year=model.exp_year,
            currency=model.currency,
            balance_cents=model.balance_cents,
        )

    @staticmethod
    def _account_id_for(fingerprint: str) -> str:
        return f'acct_{fingerprint[:24]}'

    # ============================== verify ==============================

    @Logger.io
    async def verify(self, *, card: CardDetails) -> GatewayAccount:
        fingerprint = card.fingerprint
        async with self.session_factory() as session:
            model = await self._find_account(session=session, fingerprint=fingerprint)
            if model is None:
                model = GatewayAccountModel(
                    id=self._account_id_for(fingerprint),
                    card_fingerprint=fingerprint,
                    holder_name=card.holder_name,
                    cvv=card.cvv,
                    exp_month=card.exp_month,
                    exp_year=card.exp_year,
                    last4=card.last4,
                    balance_cents=self.initial_balance_cents,
                    currency=self.currency,
                )
                session.add(model)
                try:
                    await session.commit()
                    Logger.base.info(f'💳 [GATEWAY] Opened account {model.id} (****{card.last4})')
                except IntegrityError:
                    # Same card verified concurrently
                    await session.rollback()
                    model = await self._find_account(session=session, fingerprint=fingerprint)
                    if model is None:
                        raise

            if model.cvv != card.cvv:
                raise GatewayDeclinedError(DeclineReason.BAD_CVV, 'Card verification failed')
            return self._to_account(model)

    @staticmethod
    async def _find_account(
        *, session: AsyncSession, fingerprint: str
    ) -> Optional[GatewayAccountModel]:
        return await session.scalar(
            select(GatewayAccountModel).where(GatewayAccountModel.card_fingerprint == fingerprint)
        )

    # ============================== authorize ==============================

    @Logger.io
    async def authorize(
        self,
        *,
        account_id: str,
        amount_cents: int,
        currency: str,
        cvv: str,
        idempotency_key: str,
    ) -> AuthorizationResult:
        async with self.session_factory() as session:
            replay = await self._replay(session=session, idempotency_key=idempotency_key)
            if replay is not None:
                return self._authorization_from(replay)

            account = await session.get(GatewayAccountModel, account_id)
            reason = self._decline_reason(
                account=account, amount_cents=amount_cents, currency=currency, cvv=cvv
            )
            if reason is not None:
                Logger.base.warning(f'💳 [GATEWAY] Declined {account_id}: {reason}')
                return AuthorizationResult.declined(
                    reason=reason, amount_cents=amount_cents, currency=currency
                )

            response = {
                'approved': True,
                'amount_cents': amount_cents,
                'currency': currency,
                'charge_id': f'ch_{uuid7().hex}',
                'reason': None,
            }
            stored = await self._record(
                session=session,
                account_id=account_id,
                kind=LedgerEntryKind.CHARGE,
                amount_cents=amount_cents,
                currency=currency,
                idempotency_key=idempotency_key,
                response=response,
            )
            return self._authorization_from(stored)

    @staticmethod
    def _decline_reason(
        *,
        account: Optional[GatewayAccountModel],
        amount_cents: int,
        currency: str,
        cvv: str,
    ) -> Optional[DeclineReason]:
        if account is None:
            return DeclineReason.ACCOUNT_NOT_FOUND
        if account.cvv != cvv:
            return DeclineReason.BAD_CVV
        if account.currency != currency:
            return DeclineReason.CURRENCY_MISMATCH
        if account.balance_cents < amount_cents:
            return DeclineReason.INSUFFICIENT_FUNDS
        return None

    @staticmethod
    def _authorization_from(response: Dict[str, Any]) -> AuthorizationResult:
        reason = response.get('reason')
        return AuthorizationResult(
            approved=response['approved'],
            amount_cents=response['amount_cents'],
            currency=response['currency'],
            charge_id=response.get('charge_id'),
            reason=DeclineReason(reason) if reason else None,
        )

    # ============================== refund ==============================

    @Logger.io
    async def refund(
        self, *, account_id: str, amount_cents: int, idempotency_key: str
    ) -> RefundResult:
        async with self.session_factory() as session:
            replay = await self._replay(session=session, idempotency_key=idempotency_key)
            if replay is not None:
                return self._refund_from(replay)

            account = await session.get(GatewayAccountModel, account_id)
            if account is None:
                Logger.base.warning(f'💳 [GATEWAY] Refund to unknown account {account_id}')
                return RefundResult(
                    refunded=False,
                    amount_cents=amount_cents,
                    reason=DeclineReason.ACCOUNT_NOT_FOUND,
                )

            response = {
                'refunded': True,
                'amount_cents': amount_cents,
                'refund_id': f're_{uuid7().hex}',
                'reason': None,
            }
            stored = await self._record(
                session=session,
                account_id=account_id,
                kind=LedgerEntryKind.REFUND,
                amount_cents=amount_cents,
                currency=account.currency,
                idempotency_key=idempotency_key,
                response=response,
            )
            return self._refund_from(stored)

    @staticmethod
    def _refund_from(response: Dict[str, Any]) -> RefundResult:
        reason = response.get('reason')
        return RefundResult(
            refunded=response['refunded'],
            amount_cents=response['amount_cents'],
            refund_id=response.get('refund_id'),
            reason=DeclineReason(reason) if reason else None,
        )

    # ============================== ledger ==============================

    @staticmethod
    async def _replay(*, session: AsyncSession, idempotency_key: str) -> Optional[Dict[str, Any]]:
        response_json = await session.scalar(
            select(GatewayLedgerEntryModel.response_json).where(
                GatewayLedgerEntryModel.idempotency_key == idempotency_key
            )
        )
        if response_json is None:
            return None
        Logger.base.info(f'🔁 [GATEWAY] Replaying stored result for key {idempotency_key}')
        return orjson.loads(response_json)

    async def _record(
        self,
        *,
        session: AsyncSession,
        account_id: str,
        kind: LedgerEntryKind,
        amount_cents: int,
        currency: str,
        idempotency_key: str,
        response: Dict[str, Any],
    ) -> Dict[str, Any]:
        session.add(
            GatewayLedgerEntryModel(
                id=f'le_{uuid7().hex}',
                account_id=account_id,
                kind=kind.value,
                amount_cents=amount_cents,
                currency=currency,
                idempotency_key=idempotency_key,
                response_json=orjson.dumps(response).decode(),
            )
        )
        try:
            await session.commit()
        except IntegrityError:
            # Lost a race on the same idempotency key; the winner's result is the answer
            await session.rollback()
            replay = await self._replay(session=session, idempotency_key=idempotency_key)
            if replay is None:
                raise
            return replay
        Logger.base.info(
            f'💳 [GATEWAY] {kind.value} {amount_cents} {currency} on {account_id} recorded'
        )
        return response
