"""
ID generator utils
"""
import secrets
import string
import time
import uuid

BASE36_ALPHABET = string.digits + string.ascii_lowercase

def generate_id() -> str:
    """Generate a row ID - standard UUID format"""
    return str(uuid.uuid4())

def to_base36(number: int) -> str:
    """Encode a non-negative integer in base 36 (lowercase)"""
    if number < 0:
        raise ValueError("number must be non-negative")
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))

def generate_order_number(timestamp_ms: int = None) -> str:
    """Generate a human readable order number, e.g. ORD-LQ2X9K1A-7FQ2ZD"""
    timestamp_ms = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
    suffix = "".join(secrets.choice(BASE36_ALPHABET) for _ in range(6))
    return f"ORD-{to_base36(timestamp_ms)}-{suffix}".upper()

def generate_reset_token() -> str:
    """32 random bytes as hex"""
    return secrets.token_hex(32)
