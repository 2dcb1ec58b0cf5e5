from enum import StrEnum


class NotificationType(StrEnum):
    PAYMENT_APPROVED = 'payment_approved'
    REFUND_ISSUED = 'refund_issued'
    EVENT_CANCELLED = 'event_cancelled'
    PAYOUT_ISSUED = 'payout_issued'
