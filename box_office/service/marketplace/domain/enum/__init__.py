"""Marketplace Domain Enums"""

from box_office.service.marketplace.domain.enum.decline_reason import DeclineReason
from box_office.service.marketplace.domain.enum.ledger_entry_kind import LedgerEntryKind
from box_office.service.marketplace.domain.enum.notification_type import NotificationType
from box_office.service.marketplace.domain.enum.payment_status import PaymentStatus
from box_office.service.marketplace.domain.enum.payout_strategy import PayoutStrategy
from box_office.service.marketplace.domain.enum.ticket_validity import TicketValidity

__all__ = [
    'DeclineReason',
    'LedgerEntryKind',
    'NotificationType',
    'PaymentStatus',
    'PayoutStrategy',
    'TicketValidity',
]
