"""
https://python-dependency-injector.ets-labs.org/index.html
"""

from dependency_injector import containers, providers

from box_office.platform.config.core_setting import Settings
from box_office.platform.database.orm_db_setting import Database
from box_office.platform.database.unit_of_work import SqlAlchemyUnitOfWork
from box_office.service.marketplace.app.command.add_to_cart_use_case import AddToCartUseCase
from box_office.service.marketplace.app.command.cancel_event_use_case import CancelEventUseCase
from box_office.service.marketplace.app.command.checkout_use_case import CheckoutUseCase
from box_office.service.marketplace.app.command.clear_cart_use_case import ClearCartUseCase
from box_office.service.marketplace.app.command.create_event_with_ticket_types_use_case import (
    CreateEventWithTicketTypesUseCase,
)
from box_office.service.marketplace.app.command.edit_ticket_type_use_case import (
    EditTicketTypeUseCase,
)
from box_office.service.marketplace.app.command.link_payment_method_use_case import (
    LinkPaymentMethodUseCase,
)
from box_office.service.marketplace.app.command.refund_payment_use_case import (
    RefundPaymentUseCase,
)
from box_office.service.marketplace.app.command.set_cart_quantity_use_case import (
    SetCartQuantityUseCase,
)
from box_office.service.marketplace.app.command.settle_expired_events_use_case import (
    SettleExpiredEventsUseCase,
)
from box_office.service.marketplace.app.query.get_payout_summary_use_case import (
    GetPayoutSummaryUseCase,
)
from box_office.service.marketplace.app.query.list_my_tickets_use_case import (
    ListMyTicketsUseCase,
)
from box_office.service.marketplace.app.query.validate_ticket_use_case import (
    ValidateTicketUseCase,
)
from box_office.service.marketplace.app.query.view_cart_use_case import ViewCartUseCase
from box_office.service.marketplace.driven_adapter.gateway.mock_payment_gateway_impl import (
    MockPaymentGatewayImpl,
)
from box_office.service.marketplace.driven_adapter.notification.notification_sink_impl import (
    NotificationSinkImpl,
)


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # Database (AsyncEngineManager from settings; tests override with a temp SQLite file)
    database = providers.Singleton(Database)

    # One UoW per use case call; use cases receive the provider itself as their factory
    unit_of_work = providers.Factory(
        SqlAlchemyUnitOfWork, session_factory=database.provided.new_session
    )

    # Collaborators that own their sessions
    payment_gateway = providers.Singleton(
        MockPaymentGatewayImpl,
        session_factory=database.provided.new_session,
        initial_balance_cents=config_service.provided.MOCK_GATEWAY_INITIAL_BALANCE_CENTS,
        currency=config_service.provided.MOCK_GATEWAY_CURRENCY,
    )
    notification_sink = providers.Singleton(
        NotificationSinkImpl, session_factory=database.provided.new_session
    )

    # Cart
    add_to_cart_use_case = providers.Singleton(
        AddToCartUseCase, uow_factory=unit_of_work.provider
    )
    set_cart_quantity_use_case = providers.Singleton(
        SetCartQuantityUseCase, uow_factory=unit_of_work.provider
    )
    clear_cart_use_case = providers.Singleton(ClearCartUseCase, uow_factory=unit_of_work.provider)
    view_cart_use_case = providers.Singleton(ViewCartUseCase, uow_factory=unit_of_work.provider)

    # Wallet & checkout
    link_payment_method_use_case = providers.Singleton(
        LinkPaymentMethodUseCase,
        uow_factory=unit_of_work.provider,
        payment_gateway=payment_gateway,
        gateway_timeout_seconds=config_service.provided.GATEWAY_TIMEOUT_SECONDS,
    )
    checkout_use_case = providers.Singleton(
        CheckoutUseCase,
        uow_factory=unit_of_work.provider,
        payment_gateway=payment_gateway,
        notification_sink=notification_sink,
        link_payment_method_use_case=link_payment_method_use_case,
        currency=config_service.provided.DEFAULT_CURRENCY,
        gateway_timeout_seconds=config_service.provided.GATEWAY_TIMEOUT_SECONDS,
        ticket_code_length=config_service.provided.TICKET_CODE_LENGTH,
        ticket_code_max_attempts=config_service.provided.TICKET_CODE_MAX_ATTEMPTS,
    )
    refund_payment_use_case = providers.Singleton(
        RefundPaymentUseCase,
        uow_factory=unit_of_work.provider,
        payment_gateway=payment_gateway,
        notification_sink=notification_sink,
        gateway_timeout_seconds=config_service.provided.GATEWAY_TIMEOUT_SECONDS,
    )
    list_my_tickets_use_case = providers.Singleton(
        ListMyTicketsUseCase,
        uow_factory=unit_of_work.provider,
        default_page_size=config_service.provided.TICKET_PAGE_SIZE_DEFAULT,
        max_page_size=config_service.provided.TICKET_PAGE_SIZE_MAX,
    )

    # Organizer
    create_event_with_ticket_types_use_case = providers.Singleton(
        CreateEventWithTicketTypesUseCase, uow_factory=unit_of_work.provider
    )
    edit_ticket_type_use_case = providers.Singleton(
        EditTicketTypeUseCase, uow_factory=unit_of_work.provider
    )
    cancel_event_use_case = providers.Singleton(
        CancelEventUseCase,
        uow_factory=unit_of_work.provider,
        refund_payment_use_case=refund_payment_use_case,
        notification_sink=notification_sink,
    )
    validate_ticket_use_case = providers.Singleton(
        ValidateTicketUseCase,
        uow_factory=unit_of_work.provider,
        ticket_code_length=config_service.provided.TICKET_CODE_LENGTH,
    )
    get_payout_summary_use_case = providers.Singleton(
        GetPayoutSummaryUseCase,
        uow_factory=unit_of_work.provider,
        currency=config_service.provided.DEFAULT_CURRENCY,
    )

    # Settlement
    settle_expired_events_use_case = providers.Singleton(
        SettleExpiredEventsUseCase,
        uow_factory=unit_of_work.provider,
        notification_sink=notification_sink,
        currency=config_service.provided.DEFAULT_CURRENCY,
        batch_size=config_service.provided.SETTLEMENT_BATCH_SIZE,
    )


container = Container()


def setup() -> None:
    container.config_service()
    container.database()


def cleanup() -> None:
    container.reset_singletons()
