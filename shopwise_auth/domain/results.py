"""
Operation results - Discriminated success/failure values.

Every operation exposed by the domain services returns either ``Success``
wrapping a payload or ``Failure`` carrying a stable ``ErrorCode``. Callers
branch on ``result.ok`` (or ``isinstance``) and never need ``try`` for
expected business outcomes.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class ErrorCode(str, Enum):
    """Stable error codes, one per business failure kind."""

    INVALID_IDENTITY = "invalid_identity"
    IDENTITY_ALREADY_REGISTERED = "identity_already_registered"
    CODE_EXPIRED_OR_MISSING = "code_expired_or_missing"
    CODE_MISMATCH = "code_mismatch"
    NOT_VERIFIED = "not_verified"
    INVALID_CREDENTIALS = "invalid_credentials"
    INVALID_TOKEN = "invalid_token"
    ACCOUNT_NOT_ACTIVE = "account_not_active"
    DELIVERY_ERROR = "delivery_error"
    INVALID_PASSWORD = "invalid_password"
    PERMISSION_DENIED = "permission_denied"
    USER_NOT_FOUND = "user_not_found"


# Client-facing messages. Credential and token failures stay generic.
DEFAULT_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INVALID_IDENTITY: "Provide a valid email address or phone number",
    ErrorCode.IDENTITY_ALREADY_REGISTERED: "User with this email or phone number already exists",
    ErrorCode.CODE_EXPIRED_OR_MISSING: "Verification code expired or not found. Please request a new code",
    ErrorCode.CODE_MISMATCH: "Invalid verification code",
    ErrorCode.NOT_VERIFIED: "Verification code not verified. Please verify your code first",
    ErrorCode.INVALID_CREDENTIALS: "Invalid credentials",
    ErrorCode.INVALID_TOKEN: "Invalid or expired token",
    ErrorCode.ACCOUNT_NOT_ACTIVE: "Account is not active. Please contact support",
    ErrorCode.DELIVERY_ERROR: "Could not deliver verification code. Please try again",
    ErrorCode.INVALID_PASSWORD: "Password must be between 6 characters and 72 bytes long",
    ErrorCode.PERMISSION_DENIED: "Not allowed to access this resource",
    ErrorCode.USER_NOT_FOUND: "User not found",
}


@dataclass(frozen=True)
class Success(Generic[T]):
    """Successful outcome carrying the operation payload."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """Expected business failure."""

    code: ErrorCode
    message: str

    @property
    def ok(self) -> bool:
        return False


Result = Union[Success[T], Failure]


def fail(code: ErrorCode, message: str | None = None) -> Failure:
    """Build a Failure with the default message for ``code``."""
    return Failure(code=code, message=message or DEFAULT_MESSAGES[code])
