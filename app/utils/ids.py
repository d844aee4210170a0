"""
Request ID generation utilities.
"""
import random
import time
from contextvars import ContextVar

_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"

# Set by the request middleware so adapter logs can be correlated
current_request_id: ContextVar[str] = ContextVar("current_request_id", default="")


def ulid() -> str:
    """
    Generate a ULID-like identifier.
    Format: millisecond timestamp (10 chars) + random (16 chars)
    """
    timestamp = int(time.time() * 1000)
    random_part = "".join(random.choices(_ALPHABET, k=16))
    return f"{base32_encode(timestamp, 10)}{random_part}"


def base32_encode(num: int, length: int) -> str:
    """Crockford base32, left-padded with zeros to length."""
    result = []
    while num > 0 and len(result) < length:
        num, remainder = divmod(num, 32)
        result.append(_ALPHABET[remainder])
    return "".join(reversed(result)).rjust(length, "0")


def request_id(header_value: str | None = None) -> str:
    """
    Get or generate a request ID.
    An explicit header wins, then the id bound to the current request, then a new ULID.
    """
    if header_value and header_value.strip():
        return header_value.strip()
    return current_request_id.get() or ulid()
