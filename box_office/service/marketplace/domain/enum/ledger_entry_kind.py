from enum import StrEnum


class LedgerEntryKind(StrEnum):
    CHARGE = 'charge'
    REFUND = 'refund'
