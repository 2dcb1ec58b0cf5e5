import secrets
import string


TICKET_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_ticket_code(length: int) -> str:
    return ''.join(secrets.choice(TICKET_CODE_ALPHABET) for _ in range(length))


def is_well_formed_ticket_code(code: str, length: int) -> bool:
    return (
        isinstance(code, str)
        and len(code) == length
        and all(char in TICKET_CODE_ALPHABET for char in code)
    )
