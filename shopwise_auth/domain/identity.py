"""
Identity key normalization.

An identity key is either a lowercased email address or a canonical phone
number (optional leading ``+`` followed by 7-15 digits). The same function
is used for every lookup so the three registration steps and login always
agree on the key.
"""

import re

from email_validator import EmailNotValidError, validate_email

from .exceptions import InvalidIdentity

_PHONE_SEPARATORS = re.compile(r"[\s\-.()]")
_PHONE_PATTERN = re.compile(r"^\+?\d{7,15}$")


def is_email(key: str) -> bool:
    return "@" in key


def normalize_email(raw: str) -> str:
    try:
        result = validate_email(raw.strip(), check_deliverability=False)
    except EmailNotValidError as e:
        raise InvalidIdentity(str(e)) from None
    return result.normalized.lower()


def normalize_phone(raw: str) -> str:
    candidate = _PHONE_SEPARATORS.sub("", raw.strip())
    if not _PHONE_PATTERN.match(candidate):
        raise InvalidIdentity("Invalid phone number format")
    return candidate


def normalize_identity(raw: str | None) -> str:
    """
    Normalize an email address or phone number into an identity key.

    Raises:
        InvalidIdentity: value is empty or neither format
    """
    if raw is None or not str(raw).strip():
        raise InvalidIdentity("Email or phone is required")
    value = str(raw)
    if is_email(value):
        return normalize_email(value)
    return normalize_phone(value)
