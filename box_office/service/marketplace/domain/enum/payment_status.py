from enum import StrEnum


class PaymentStatus(StrEnum):
    APPROVED = 'approved'
    REFUNDED = 'refunded'  # fully refunded; partial refunds keep APPROVED
