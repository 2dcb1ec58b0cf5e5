from enum import StrEnum


class DeclineReason(StrEnum):
    """Why the payment gateway refused an authorization or refund"""

    ACCOUNT_NOT_FOUND = 'account_not_found'
    BAD_CVV = 'bad_cvv'
    CURRENCY_MISMATCH = 'currency_mismatch'
    INSUFFICIENT_FUNDS = 'insufficient_funds'
    TIMEOUT = 'timeout'
