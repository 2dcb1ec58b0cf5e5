from abc import ABC, abstractmethod

from box_office.service.marketplace.domain.value_object.notification_message import (
    NotificationMessage,
)


class INotificationSink(ABC):
    """Fire-and-forget delivery; implementations must not raise."""

    @abstractmethod
    async def notify(self, *, message: NotificationMessage) -> None:
        pass
