"""
Authentication domain services - Login, logout and account administration.

Login never tells the caller *why* it failed: unknown identity, wrong
password, inactive account and disallowed role all produce the same
INVALID_CREDENTIALS result, and bcrypt runs in every case so response
time does not reveal whether the account exists.
"""

import logging
from collections.abc import Callable, Collection
from dataclasses import dataclass, field
from datetime import datetime

from .exceptions import InvalidIdentity, InvalidToken
from .identity import normalize_identity
from .models import ADMIN_ROLES, AccountStatus, AuthenticatedSession, LoggedOut, Role, UserRecord
from .passwords import PasswordHasher
from .ports import UserStore
from .results import ErrorCode, Result, Success, fail
from .tokens import TokenIssuer, utcnow

logger = logging.getLogger(__name__)


@dataclass
class AuthenticationService:
    """Password login and session token validation."""

    user_store: UserStore
    hasher: PasswordHasher
    tokens: TokenIssuer
    clock: Callable[[], datetime] = field(default=utcnow)

    def login(
        self,
        identity: str,
        password: str,
        allowed_roles: Collection[Role] | None = None,
    ) -> Result[AuthenticatedSession]:
        """
        Authenticate with identity and password.

        Args:
            identity: Email address or phone number
            password: Plaintext password
            allowed_roles: If given, only users holding one of these roles
                may log in (admin console)

        Returns:
            Success(AuthenticatedSession) or Failure INVALID_CREDENTIALS
        """
        try:
            key = normalize_identity(identity)
        except InvalidIdentity:
            key = None

        user = self.user_store.find_by_identity(key) if key is not None else None

        # Always run bcrypt, against a dummy hash when there is no user
        stored_hash = user.password_hash if user is not None else None
        password_valid = self.hasher.compare(password, stored_hash or self.hasher.dummy_hash)

        if user is None or not password_valid or user.status != AccountStatus.ACTIVE:
            return fail(ErrorCode.INVALID_CREDENTIALS)
        if allowed_roles is not None and user.role not in allowed_roles:
            logger.info("Login rejected for role %s", user.role.value)
            return fail(ErrorCode.INVALID_CREDENTIALS)

        updated = self.user_store.update_user(user.id, {"last_login": self.clock()}) or user
        token = self.tokens.issue(updated.id, updated.role.value)
        return Success(
            AuthenticatedSession(
                user=updated.without_credential(),
                token=token,
                expires_in_seconds=self.tokens.session_ttl_seconds,
            )
        )

    def logout(self, token: str | None) -> Result[LoggedOut]:
        """
        Acknowledge logout of a well-formed session token.

        Tokens are stateless, so there is nothing to revoke server side;
        clearing the client copy is up to the transport layer.
        """
        if not token:
            return fail(ErrorCode.INVALID_TOKEN)
        try:
            claims = self.tokens.verify(token)
        except InvalidToken:
            return fail(ErrorCode.INVALID_TOKEN)
        return Success(LoggedOut(subject_id=claims.subject_id))

    def current_user(self, token: str | None) -> Result[UserRecord]:
        """Resolve a session token to its credential-stripped user."""
        if not token:
            return fail(ErrorCode.INVALID_TOKEN)
        try:
            claims = self.tokens.verify(token)
        except InvalidToken:
            return fail(ErrorCode.INVALID_TOKEN)

        user = self.user_store.find_by_id(claims.subject_id)
        if user is None:
            return fail(ErrorCode.INVALID_TOKEN)
        if not user.is_active:
            return fail(ErrorCode.ACCOUNT_NOT_ACTIVE)
        return Success(user.without_credential())


@dataclass
class AccountService:
    """Administrative changes to existing accounts."""

    authentication: AuthenticationService
    user_store: UserStore
    admin_roles: frozenset[Role] = ADMIN_ROLES

    def change_status(
        self, actor_token: str | None, user_id: str, status: AccountStatus
    ) -> Result[UserRecord]:
        actor = self.authentication.current_user(actor_token)
        if not actor.ok:
            return actor
        if actor.value.role not in self.admin_roles:
            return fail(ErrorCode.PERMISSION_DENIED)

        updated = self.user_store.update_user(user_id, {"status": status})
        if updated is None:
            return fail(ErrorCode.USER_NOT_FOUND)
        logger.info("User %s status set to %s by %s", user_id, status.value, actor.value.id)
        return Success(updated.without_credential())
