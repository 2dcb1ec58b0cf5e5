from typing import Optional

import attrs

from box_office.service.marketplace.domain.enum.notification_type import NotificationType


@attrs.define(frozen=True)
class NotificationMessage:
    user_id: int
    type: NotificationType
    message: str
    event_id: Optional[int] = None
    payment_id: Optional[int] = None
