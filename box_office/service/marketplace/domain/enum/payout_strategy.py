from enum import StrEnum


class PayoutStrategy(StrEnum):
    """Which revenue aggregation produced the payout amount"""

    DIRECT = 'direct'  # payment.event_id
    VIA_TICKETS = 'via_tickets'  # purchases of the event's tickets
