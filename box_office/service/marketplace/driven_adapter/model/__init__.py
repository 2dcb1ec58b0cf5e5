"""
Database Models

Import all models here to ensure they are registered with SQLAlchemy
"""

from box_office.service.marketplace.driven_adapter.model.cart_model import (
    CartLineModel,
    CartModel,
)
from box_office.service.marketplace.driven_adapter.model.event_model import EventModel
from box_office.service.marketplace.driven_adapter.model.gateway_model import (
    GatewayAccountModel,
    GatewayLedgerEntryModel,
)
from box_office.service.marketplace.driven_adapter.model.notification_model import (
    NotificationModel,
)
from box_office.service.marketplace.driven_adapter.model.payment_method_model import (
    PaymentMethodModel,
    UserPaymentMethodModel,
)
from box_office.service.marketplace.driven_adapter.model.payment_model import (
    PaymentModel,
    PurchaseModel,
    RefundModel,
)
from box_office.service.marketplace.driven_adapter.model.payout_model import PayoutModel
from box_office.service.marketplace.driven_adapter.model.ticket_model import TicketModel
from box_office.service.marketplace.driven_adapter.model.ticket_type_model import (
    TicketTypeModel,
)

__all__ = [
    'CartLineModel',
    'CartModel',
    'EventModel',
    'GatewayAccountModel',
    'GatewayLedgerEntryModel',
    'NotificationModel',
    'PaymentMethodModel',
    'PaymentModel',
    'PayoutModel',
    'PurchaseModel',
    'RefundModel',
    'TicketModel',
    'TicketTypeModel',
    'UserPaymentMethodModel',
]
