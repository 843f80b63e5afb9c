"""Verification code generation."""

import secrets

DIGITS = "0123456789"


def generate_code(length: int = 6) -> str:
    """
    Generate a numeric one-time code.

    Returns a string to preserve leading zeros.
    """
    if length < 1:
        raise ValueError("code length must be positive")
    return "".join(secrets.choice(DIGITS) for _ in range(length))
