from functools import wraps
from typing import Any, Awaitable, Callable, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError

from box_office.platform.exception.exceptions import InternalError
from box_office.platform.logging.loguru_io import Logger


_F = TypeVar('_F', bound=Callable[..., Awaitable[Any]])


def storage_error_as_internal(func: _F) -> _F:
    """
    Turn database failures escaping a use case into InternalError.

    The full error is logged here; callers only see the generic message.
    Place it below @Logger.io so the InternalError is what gets logged as the result.
    """

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except SQLAlchemyError as e:
            Logger.base.exception(f'💾 [STORAGE] {func.__qualname__} failed: {e}')
            raise InternalError() from e

    return cast(_F, wrapper)
