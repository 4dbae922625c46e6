import secrets
import string

from ..config import settings

JOIN_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_join_code(length: int = None) -> str:
    """Short code students type in to find a contest"""
    length = length or settings.join_code_length
    return "".join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(length))


def generate_session_id() -> str:
    """Opaque token that identifies a participant across requests"""
    return secrets.token_urlsafe(24)


def normalize_join_code(join_code: str) -> str:
    return join_code.strip().upper()
