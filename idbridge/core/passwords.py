"""Temporary credential generation."""
from __future__ import annotations
import secrets
import string

DEFAULT_TEMP_PASSWORD_LENGTH = 6

# Letters and digits without look-alikes (0/O, 1/l/I)
TEMP_PASSWORD_ALPHABET = "".join(
    char for char in string.ascii_letters + string.digits if char not in "0Ol1I"
)


def generate_temp_password(length: int = DEFAULT_TEMP_PASSWORD_LENGTH) -> str:
    """Generate a random one-time password of exactly ``length`` characters."""
    if length < 1:
        raise ValueError("Password length must be positive")
    return "".join(secrets.choice(TEMP_PASSWORD_ALPHABET) for _ in range(length))
