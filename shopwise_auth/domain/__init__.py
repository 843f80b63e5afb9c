"""
Domain layer - Pure business logic with zero framework imports.

This package contains the OTP-gated registration state machine and the
password authentication flow. It defines its own port interfaces for
infrastructure abstraction; adapters live in ``shopwise_auth.adapters``.
"""

from .authentication import AccountService, AuthenticationService
from .exceptions import (
    AuthError,
    DeliveryError,
    InfrastructureError,
    InvalidIdentity,
    InvalidToken,
    UniquenessViolation,
)
from .models import AccountStatus, ProfileFields, RegistrationState, Role, UserRecord
from .passwords import PasswordHasher
from .ports import NotificationSender, UserStore, VerificationStore
from .registration import RegistrationService
from .results import ErrorCode, Failure, Result, Success
from .tokens import TokenIssuer

__all__ = [
    "AccountService",
    "AccountStatus",
    "AuthError",
    "AuthenticationService",
    "DeliveryError",
    "ErrorCode",
    "Failure",
    "InfrastructureError",
    "InvalidIdentity",
    "InvalidToken",
    "NotificationSender",
    "PasswordHasher",
    "ProfileFields",
    "RegistrationService",
    "RegistrationState",
    "Result",
    "Role",
    "Success",
    "TokenIssuer",
    "UniquenessViolation",
    "UserRecord",
    "UserStore",
    "VerificationStore",
]
