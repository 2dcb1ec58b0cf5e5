from box_office.service.marketplace.domain.entity.cart_entity import Cart, CartLine
from box_office.service.marketplace.domain.entity.ticket_type_entity import TicketType


VALID_CARD_NUMBER = '4242424242424242'
OTHER_CARD_NUMBER = '5555555555554444'
THIRD_CARD_NUMBER = '4012888888881881'


def make_ticket_type(
    *, id: int, event_id: int = 10, price_cents: int = 1500, left: int = 5, total: int = 5
) -> TicketType:
    return TicketType(
        id=id,
        event_id=event_id,
        label=f'Type {id}',
        price_cents=price_cents,
        quantity_total=total,
        quantity_left=left,
    )


def make_cart(*lines: tuple[int, int, int], user_id: int = 1) -> Cart:
    """lines: (ticket_type_id, quantity, unit_price_cents_snapshot)"""
    return Cart(
        id=1,
        owner_user_id=user_id,
        lines=[
            CartLine(
                cart_id=1,
                ticket_type_id=ticket_type_id,
                quantity=quantity,
                unit_price_cents_snapshot=price,
            )
            for ticket_type_id, quantity, price in lines
        ],
    )
