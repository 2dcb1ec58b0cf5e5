from loguru import logger as loguru_logger
import pytest

from box_office.platform.config.core_setting import settings
from box_office.platform.logging.loguru_io import Logger, LoguruIO
from box_office.platform.logging.loguru_io_config import custom_logger
from box_office.platform.logging.loguru_io_utils import MASK, mask_sensitive, truncate_content
from box_office.service.marketplace.domain.value_object.card import CardDetails
from tests.service.marketplace.builders import VALID_CARD_NUMBER


@pytest.fixture
def captured_messages(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings, 'DEBUG', True)
    messages: list[str] = []
    sink_id = loguru_logger.add(lambda m: messages.append(m.record['message']), level='DEBUG')
    yield messages
    loguru_logger.remove(sink_id)


class TestMaskSensitive:
    @pytest.mark.parametrize(
        'raw,expected',
        [
            ("cvv='123'", f"cvv='{MASK}'"),
            ("{'number': '4242424242424242'}", f"{{'number': '{MASK}'}}"),
            ('card_number=4242424242424242', f"card_number='{MASK}'"),
            ("holder_name='Ada'", "holder_name='Ada'"),
        ],
    )
    def test_mask_sensitive_string(self, raw: str, expected: str) -> None:
        assert mask_sensitive(raw) == expected

    def test_non_sensitive_data_is_returned_untouched(self) -> None:
        data = {'user_id': 1}
        assert mask_sensitive(data) is data

    def test_dict_keys_are_masked(self) -> None:
        io = LoguruIO(custom_logger)

        masked = io.mask_sensitive({'cvv': '123', 'user_id': 7})

        assert masked == {'cvv': MASK, 'user_id': 7}

    def test_card_repr_hides_number_and_cvv(self) -> None:
        card = CardDetails.create(
            number=VALID_CARD_NUMBER,
            holder_name='Ada Lovelace',
            cvv='123',
            exp_month=12,
            exp_year=2040,
        )

        text = repr(card)

        assert VALID_CARD_NUMBER not in text
        assert "'123'" not in text
        assert 'Ada Lovelace' in text

    def test_truncate_long_content(self) -> None:
        result = truncate_content('x' * 50, max_length=10)

        assert result.startswith('x' * 10)
        assert 'truncated 40 chars' in result


class TestLoggerIODecorator:
    async def test_cvv_never_reaches_the_log(self, captured_messages: list[str]) -> None:
        @Logger.io
        async def authorize(*, account_id: str, cvv: str) -> str:
            return account_id

        result = await authorize(account_id='acct_1', cvv='987')

        assert result == 'acct_1'
        joined = '\n'.join(captured_messages)
        assert 'acct_1' in joined
        assert '987' not in joined

    async def test_exception_is_reraised(self, captured_messages: list[str]) -> None:
        @Logger.io
        async def explode() -> None:
            raise ValueError('boom')

        with pytest.raises(ValueError, match='boom'):
            await explode()

        assert any('ValueError: boom' in message for message in captured_messages)
