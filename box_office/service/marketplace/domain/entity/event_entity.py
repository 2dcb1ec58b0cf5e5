from datetime import datetime, timezone
from typing import Optional

import attrs

from box_office.platform.exception.exceptions import InvalidArgumentError


def _validate_non_empty_string(instance: object, attribute: attrs.Attribute, value: str) -> None:
    if not value or not value.strip():
        raise InvalidArgumentError(f'Event {attribute.name} cannot be empty')


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


@attrs.define
class Event:
    organizer_id: int
    title: str = attrs.field(validator=_validate_non_empty_string)
    start_time: datetime = attrs.field(converter=_as_utc)
    end_time: datetime = attrs.field(converter=_as_utc)
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    @end_time.validator
    def _check_end_time(self, attribute: attrs.Attribute, value: datetime) -> None:
        if value < self.start_time:
            raise InvalidArgumentError('Event end_time must not be before start_time')

    def is_purchasable(self, now: datetime) -> bool:
        return now <= self.start_time

    def has_ended(self, now: datetime) -> bool:
        return now > self.end_time

    def is_owned_by(self, user_id: int) -> bool:
        return self.organizer_id == user_id
