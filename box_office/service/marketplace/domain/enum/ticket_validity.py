from enum import StrEnum


class TicketValidity(StrEnum):
    VALID = 'valid'
    INVALID = 'invalid'
