import calendar
from datetime import datetime, timezone
import hashlib
import re

import attrs

from box_office.platform.exception.exceptions import InvalidArgumentError


_NON_DIGITS = re.compile(r'[\s-]')
_CVV = re.compile(r'^\d{3,4}$')
MAX_EXPIRY_YEARS_AHEAD = 50


def luhn_check(number: str) -> bool:
    total = 0
    for index, char in enumerate(reversed(number)):
        digit = int(char)
        if index % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def card_expires_before(*, exp_month: int, exp_year: int, now: datetime) -> bool:
    """A card is usable through the last day of its expiry month"""
    last_day = calendar.monthrange(exp_year, exp_month)[1]
    end_of_month = datetime(exp_year, exp_month, last_day, 23, 59, 59, tzinfo=timezone.utc)
    return end_of_month < now


@attrs.define(frozen=True)
class CardDetails:
    number: str = attrs.field(repr=lambda _: '****')
    holder_name: str
    cvv: str = attrs.field(repr=lambda _: '***')
    exp_month: int
    exp_year: int

    @classmethod
    def create(
        cls,
        *,
        number: str,
        holder_name: str,
        cvv: str,
        exp_month: int,
        exp_year: int,
        now: datetime | None = None,
    ) -> 'CardDetails':
        """Normalize raw card input; raises InvalidArgumentError on malformed fields"""
        digits = _NON_DIGITS.sub('', str(number or ''))
        if not digits.isdigit() or not 12 <= len(digits) <= 19:
            raise InvalidArgumentError('Card number must be 12-19 digits')
        if not luhn_check(digits):
            raise InvalidArgumentError('Card number failed checksum')

        name = ' '.join(str(holder_name or '').split())
        if not name:
            raise InvalidArgumentError('Cardholder name is required')

        cvv = str(cvv or '').strip()
        if not _CVV.match(cvv):
            raise InvalidArgumentError('CVV must be 3 or 4 digits')

        try:
            month = int(exp_month)
            year = int(exp_year)
        except (TypeError, ValueError):
            raise InvalidArgumentError('Expiry month and year must be numbers')
        if not 1 <= month <= 12:
            raise InvalidArgumentError('Expiry month must be between 1 and 12')
        if 0 <= year < 100:
            year += 2000
        now = now or datetime.now(timezone.utc)
        if not 2000 <= year <= now.year + MAX_EXPIRY_YEARS_AHEAD:
            raise InvalidArgumentError('Expiry year is out of range')
        if card_expires_before(exp_month=month, exp_year=year, now=now):
            raise InvalidArgumentError('Card expired')

        return cls(number=digits, holder_name=name, cvv=cvv, exp_month=month, exp_year=year)

    @property
    def last4(self) -> str:
        return self.number[-4:]

    @property
    def fingerprint(self) -> str:
        """Stable key of the card tuple; the CVV is checked, not keyed"""
        raw = f'{self.number}|{self.exp_month:02d}|{self.exp_year}|{self.holder_name.lower()}'
        return hashlib.sha256(raw.encode()).hexdigest()
