import pytest

from box_office.platform.exception.exceptions import ConflictError, GatewayDeclinedError
from box_office.service.marketplace.domain.enum.decline_reason import DeclineReason
from box_office.service.marketplace.driven_adapter.model.gateway_model import (
    GatewayAccountModel,
    GatewayLedgerEntryModel,
)
from tests.service.marketplace.builders import OTHER_CARD_NUMBER, THIRD_CARD_NUMBER
from tests.service.marketplace.integration.helpers import (
    BUYER_ID,
    CVV,
    OTHER_BUYER_ID,
    count_rows,
    link_card,
    make_card,
)


class TestLinkPaymentMethod:
    async def test_link_twice_is_a_conflict(self, container, buyer_card) -> None:
        with pytest.raises(ConflictError):
            await link_card(container, user_id=BUYER_ID)

    async def test_same_card_shared_by_two_users_maps_to_one_payment_method(
        self, container, database, buyer_card
    ) -> None:
        other = await link_card(container, user_id=OTHER_BUYER_ID)

        assert other.id == buyer_card.id
        assert await count_rows(database, GatewayAccountModel) == 1

    async def test_wallet_lists_linked_cards(self, container, buyer_card) -> None:
        await link_card(container, user_id=BUYER_ID, number=THIRD_CARD_NUMBER)

        async with container.unit_of_work() as uow:
            wallet = await uow.payment_method_repo.list_for_user(user_id=BUYER_ID)

        assert [pm.last4 for pm in wallet] == ['4242', '1881']

    async def test_wrong_cvv_on_known_card_is_declined(self, container, buyer_card) -> None:
        with pytest.raises(GatewayDeclinedError) as exc_info:
            await container.link_payment_method_use_case().link(
                user_id=OTHER_BUYER_ID, card=make_card(cvv='999')
            )

        assert exc_info.value.reason is DeclineReason.BAD_CVV


class TestMockPaymentGateway:
    @pytest.fixture
    def gateway(self, container):
        return container.payment_gateway()

    async def test_verify_is_keyed_by_card(self, gateway) -> None:
        first = await gateway.verify(card=make_card())
        again = await gateway.verify(card=make_card())
        other = await gateway.verify(card=make_card(number=OTHER_CARD_NUMBER))

        assert first.account_id == again.account_id
        assert first.account_id != other.account_id
        assert first.last4 == '4242'
        assert first.balance_cents == 500_000

    async def test_authorize_replays_same_idempotency_key(self, gateway, database) -> None:
        account = await gateway.verify(card=make_card())

        first = await gateway.authorize(
            account_id=account.account_id,
            amount_cents=1500,
            currency='CAD',
            cvv=CVV,
            idempotency_key='checkout-1',
        )
        second = await gateway.authorize(
            account_id=account.account_id,
            amount_cents=1500,
            currency='CAD',
            cvv=CVV,
            idempotency_key='checkout-1',
        )

        assert first.approved and second.approved
        assert first.charge_id == second.charge_id
        assert await count_rows(database, GatewayLedgerEntryModel) == 1

    @pytest.mark.parametrize(
        'overrides,reason',
        [
            pytest.param({'cvv': '000'}, DeclineReason.BAD_CVV, id='bad_cvv'),
            pytest.param({'currency': 'USD'}, DeclineReason.CURRENCY_MISMATCH, id='currency'),
            pytest.param(
                {'amount_cents': 500_001}, DeclineReason.INSUFFICIENT_FUNDS, id='balance'
            ),
            pytest.param(
                {'account_id': 'acct_missing'}, DeclineReason.ACCOUNT_NOT_FOUND, id='no_account'
            ),
        ],
    )
    async def test_authorize_declines(self, gateway, database, overrides, reason) -> None:
        account = await gateway.verify(card=make_card())
        request = {
            'account_id': account.account_id,
            'amount_cents': 1500,
            'currency': 'CAD',
            'cvv': CVV,
            'idempotency_key': 'checkout-2',
        } | overrides

        result = await gateway.authorize(**request)

        assert not result.approved
        assert result.reason is reason
        assert result.charge_id is None
        assert await count_rows(database, GatewayLedgerEntryModel) == 0

    async def test_balance_is_advisory(self, gateway) -> None:
        account = await gateway.verify(card=make_card())
        for key in ('a', 'b'):
            result = await gateway.authorize(
                account_id=account.account_id,
                amount_cents=400_000,
                currency='CAD',
                cvv=CVV,
                idempotency_key=key,
            )
            assert result.approved

    async def test_refund(self, gateway) -> None:
        account = await gateway.verify(card=make_card())

        refunded = await gateway.refund(
            account_id=account.account_id, amount_cents=700, idempotency_key='refund-1'
        )
        unknown = await gateway.refund(
            account_id='acct_missing', amount_cents=700, idempotency_key='refund-2'
        )

        assert refunded.refunded
        assert refunded.refund_id.startswith('re_')
        assert not unknown.refunded
        assert unknown.reason is DeclineReason.ACCOUNT_NOT_FOUND
