from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from box_office.platform.logging.loguru_io import Logger
from box_office.service.marketplace.app.interface.i_notification_sink import INotificationSink
from box_office.service.marketplace.domain.value_object.notification_message import (
    NotificationMessage,
)
from box_office.service.marketplace.driven_adapter.model.notification_model import (
    NotificationModel,
)


class NotificationSinkImpl(INotificationSink):
    """
    Appends notifications to the notification table in a session of its own.

    Delivery (email, push, webhooks) happens elsewhere. A failure here is logged
    and dropped: the business transaction that produced the message has already
    committed.
    """

    def __init__(self, *, session_factory: Callable[[], AsyncSession]) -> None:
        self.session_factory = session_factory

    async def notify(self, *, message: NotificationMessage) -> None:
        try:
            async with self.session_factory() as session:
                session.add(
                    NotificationModel(
                        user_id=message.user_id,
                        type=message.type.value,
                        message=message.message,
                        event_id=message.event_id,
                        payment_id=message.payment_id,
                    )
                )
                await session.commit()
        except SQLAlchemyError as e:
            Logger.base.error(
                f'📭 [NOTIFY] Failed to store {message.type} for user {message.user_id}: {e}'
            )
            return

        Logger.base.info(f'📬 [NOTIFY] {message.type} -> user {message.user_id}')
