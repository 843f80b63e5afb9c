"""
Domain models - Records and payloads exchanged with ports and callers.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    """Account roles. CUSTOMER is the base role given at registration."""

    CUSTOMER = "customer"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"
    VENDOR = "vendor"
    DELIVERY_BOY = "delivery_boy"


ADMIN_ROLES = frozenset({Role.ADMIN, Role.SUPER_ADMIN})


class AccountStatus(str, Enum):
    """Account lifecycle status. Only ACTIVE accounts may log in."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    BANNED = "banned"


class RegistrationState(str, Enum):
    """
    Registration State Machine states.

    State Transitions (forward-only):
    - UNSTARTED -> CODE_SENT      (request_code)
    - CODE_SENT -> CODE_SENT      (request_code again, last code wins)
    - CODE_SENT -> CODE_VERIFIED  (verify_code with the live code)
    - CODE_VERIFIED -> FINALIZED  (finalize_registration)

    Expiry or too many mismatches drop the key back to UNSTARTED.
    FINALIZED is terminal: the identity now belongs to a user record.
    """

    UNSTARTED = "unstarted"
    CODE_SENT = "code_sent"
    CODE_VERIFIED = "code_verified"
    FINALIZED = "finalized"


@dataclass(frozen=True)
class ProfileFields:
    """Profile data supplied by the client during registration."""

    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None

    def is_empty(self) -> bool:
        return not any((self.first_name, self.last_name, self.email, self.phone))


@dataclass
class VerificationRecord:
    """
    Short-lived proof-of-control record for one identity key.

    ``profile`` holds the fields supplied with the code request, carried
    forward to finalize.
    """

    identity_key: str
    code: str
    created_at: float
    expires_at: float
    verified: bool = False
    attempt_count: int = 0
    profile: ProfileFields | None = None

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


@dataclass(frozen=True)
class UserRecord:
    """Durable user account. ``password_hash`` is None once stripped."""

    id: str
    email: str | None
    phone: str | None
    password_hash: str | None
    first_name: str | None = None
    last_name: str | None = None
    role: Role = Role.CUSTOMER
    status: AccountStatus = AccountStatus.ACTIVE
    is_email_verified: bool = False
    is_mobile_verified: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_login: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatus.ACTIVE

    def without_credential(self) -> "UserRecord":
        """Copy safe to hand to callers."""
        return replace(self, password_hash=None)


@dataclass(frozen=True)
class SessionClaims:
    """Verified contents of a signed token."""

    subject_id: str
    role: str | None
    issued_at: datetime
    expires_at: datetime
    purpose: str = "session"


@dataclass(frozen=True)
class CodeSent:
    identity_key: str
    expires_in_seconds: int


@dataclass(frozen=True)
class CodeVerified:
    identity_key: str
    registration_token: str
    expires_in_seconds: int


@dataclass(frozen=True)
class AuthenticatedSession:
    """Credential-stripped user plus a freshly issued session token."""

    user: UserRecord
    token: str
    expires_in_seconds: int


@dataclass(frozen=True)
class LoggedOut:
    subject_id: str
