from box_office.service.marketplace.domain.enum.decline_reason import DeclineReason


class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    def __init__(self, message: str, status_code: int) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class InvalidArgumentError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 400)


class ForbiddenError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 403)


class NotFoundError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class ConflictError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class GatewayDeclinedError(CustomBaseError):
    def __init__(self, reason: DeclineReason, message: str | None = None) -> None:
        self.reason = reason
        super().__init__(message or f'Payment declined: {reason}', 402)


class InternalError(CustomBaseError):
    """Generic failure surfaced to callers; the detail only goes to the logs"""

    def __init__(self, message: str = 'Internal error') -> None:
        super().__init__(message, 500)
