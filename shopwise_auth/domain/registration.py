"""
Registration domain service - OTP-gated account creation.

Registration State Machine (Forward-Only Transitions)
=====================================================

States:
- UNSTARTED: No live verification record for the identity key
- CODE_SENT: Verification record stored, code delivered, not yet verified
- CODE_VERIFIED: Code matched; a password may now be set
- FINALIZED: User record created; verification record deleted

Valid Transitions:
    UNSTARTED -> CODE_SENT        (request_code)
    CODE_SENT -> CODE_SENT        (request_code again, previous code superseded)
    CODE_SENT -> CODE_VERIFIED    (verify_code)
    CODE_VERIFIED -> FINALIZED    (finalize_registration)
    CODE_SENT/CODE_VERIFIED -> UNSTARTED  (TTL exceeded, or too many mismatches)

Note: the user store's unique indexes are the arbiter for concurrent
finalize calls. The pre-checks here only avoid needless work.
"""

import logging
import secrets
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from .codes import generate_code
from .exceptions import DeliveryError, InvalidIdentity, InvalidToken, UniquenessViolation
from .identity import is_email, normalize_email, normalize_identity, normalize_phone
from .models import (
    AccountStatus,
    AuthenticatedSession,
    CodeSent,
    CodeVerified,
    ProfileFields,
    RegistrationState,
    Role,
    UserRecord,
)
from .passwords import PasswordHasher, password_is_acceptable
from .ports import NotificationSender, UserStore, VerificationStore
from .results import ErrorCode, Result, Success, fail
from .tokens import REGISTRATION, TokenIssuer, utcnow

logger = logging.getLogger(__name__)


def _new_user_id() -> str:
    return str(uuid.uuid4())


@dataclass
class RegistrationService:
    """
    Domain service for the three-step registration flow.

    Orchestrates identity normalization, code generation and delivery,
    code verification, password hashing and user creation.
    """

    verification_store: VerificationStore
    user_store: UserStore
    notifier: NotificationSender
    hasher: PasswordHasher
    tokens: TokenIssuer
    code_length: int = 6
    code_ttl_seconds: int = 300
    max_verify_attempts: int = 5
    registration_token_ttl_seconds: int = 900
    clock: Callable[[], datetime] = field(default=utcnow)
    id_factory: Callable[[], str] = field(default=_new_user_id)

    def request_code(
        self, identity: str, profile: ProfileFields | None = None
    ) -> Result[CodeSent]:
        """
        Step 1: generate a code for ``identity`` and deliver it.

        Calling again for the same identity replaces the previous code
        (resend semantics). The normalized profile is stored with the code
        and used by finalize_registration when the client omits it there.

        Returns:
            Success(CodeSent) - never includes the code itself
            Failure INVALID_IDENTITY, IDENTITY_ALREADY_REGISTERED or DELIVERY_ERROR
        """
        profile = profile or ProfileFields()
        try:
            key = normalize_identity(identity)
            secondary = self._secondary_keys(key, profile)
        except InvalidIdentity:
            return fail(ErrorCode.INVALID_IDENTITY)

        if self._identity_taken(key, *secondary):
            logger.info("Code request for already registered identity")
            return fail(ErrorCode.IDENTITY_ALREADY_REGISTERED)

        if profile.is_empty():
            # Resend without profile keeps what the first request supplied
            pending = self.verification_store.pending_profile(key)
        else:
            pending = self._stored_profile(key, profile, secondary)

        code = generate_code(self.code_length)
        self.verification_store.set_code(key, code, self.code_ttl_seconds, pending)

        minutes = max(1, self.code_ttl_seconds // 60)
        message = f"Your verification code is {code}. It expires in {minutes} minutes."
        try:
            self.notifier.send(key, message)
        except DeliveryError:
            logger.warning("Verification code delivery failed", exc_info=True)
            self.verification_store.delete_code(key, code=code)
            return fail(ErrorCode.DELIVERY_ERROR)

        return Success(CodeSent(identity_key=key, expires_in_seconds=self.code_ttl_seconds))

    def verify_code(self, identity: str, submitted_code: str | int) -> Result[CodeVerified]:
        """
        Step 2: compare ``submitted_code`` with the live code.

        Both sides are compared as stripped strings, so an integer submitted
        by a JSON client matches the stored string code. Every attempt is
        counted by the store before the comparison, so at most
        ``max_verify_attempts`` guesses are ever compared against one code,
        however many arrive in parallel. Failed attempts never extend the
        expiry; the last allowed mismatch discards the record and the client
        must request a new code.

        Returns:
            Success(CodeVerified) carrying a short-lived registration token
            Failure INVALID_IDENTITY, CODE_EXPIRED_OR_MISSING or CODE_MISMATCH
        """
        try:
            key = normalize_identity(identity)
        except InvalidIdentity:
            return fail(ErrorCode.INVALID_IDENTITY)

        claimed = self.verification_store.claim_attempt(key)
        if claimed is None:
            return fail(ErrorCode.CODE_EXPIRED_OR_MISSING)

        stored, attempt = claimed
        if attempt > self.max_verify_attempts:
            logger.warning("Verification attempt over the limit refused")
            return fail(ErrorCode.CODE_EXPIRED_OR_MISSING)

        submitted = str(submitted_code).strip()
        if not secrets.compare_digest(str(stored).encode(), submitted.encode()):
            if attempt == self.max_verify_attempts:
                logger.warning("Verification attempts exhausted, discarding code")
                self.verification_store.delete_code(key, code=stored)
            return fail(ErrorCode.CODE_MISMATCH)

        self.verification_store.mark_verified(key)
        registration_token = self.tokens.issue(
            key,
            ttl_seconds=self.registration_token_ttl_seconds,
            purpose=REGISTRATION,
        )
        return Success(
            CodeVerified(
                identity_key=key,
                registration_token=registration_token,
                expires_in_seconds=self.registration_token_ttl_seconds,
            )
        )

    def finalize_registration(
        self,
        identity: str,
        profile: ProfileFields | None,
        password: str,
        registration_token: str | None = None,
    ) -> Result[AuthenticatedSession]:
        """
        Step 3: set the password and materialize the user record.

        Profile fields omitted here fall back to those stored with the code
        request. Names given here take precedence; a secondary contact that
        differs from the stored one is rejected.

        The verification record is deleted only after the user record was
        created, so a crash in between leaves at worst a stale record that
        expires on its own.

        Returns:
            Success(AuthenticatedSession) with the new credential-stripped user
            Failure INVALID_IDENTITY, INVALID_PASSWORD, NOT_VERIFIED or
            IDENTITY_ALREADY_REGISTERED
        """
        profile = profile or ProfileFields()
        try:
            key = normalize_identity(identity)
            secondary = self._secondary_keys(key, profile)
        except InvalidIdentity:
            return fail(ErrorCode.INVALID_IDENTITY)

        if not password_is_acceptable(password):
            return fail(ErrorCode.INVALID_PASSWORD)

        # Must precede the uniqueness check; the winner creates the user
        # before deleting the record.
        verified = self.verification_store.is_verified(key)

        pending = self.verification_store.pending_profile(key)
        if pending is not None:
            pending_secondary = self._secondary_keys(key, pending)
            if secondary and pending_secondary and secondary != pending_secondary:
                return fail(ErrorCode.INVALID_IDENTITY)
            secondary = secondary or pending_secondary
            profile = ProfileFields(
                first_name=profile.first_name or pending.first_name,
                last_name=profile.last_name or pending.last_name,
            )

        if self._identity_taken(key, *secondary):
            return fail(ErrorCode.IDENTITY_ALREADY_REGISTERED)

        if not verified:
            return fail(ErrorCode.NOT_VERIFIED)

        if registration_token is not None and not self._token_matches(registration_token, key):
            return fail(ErrorCode.NOT_VERIFIED)

        other = secondary[0] if secondary else None
        email, phone = (key, other) if is_email(key) else (other, key)
        now = self.clock()
        record = UserRecord(
            id=self.id_factory(),
            email=email,
            phone=phone,
            password_hash=self.hasher.hash(password),
            first_name=profile.first_name,
            last_name=profile.last_name,
            role=Role.CUSTOMER,
            status=AccountStatus.ACTIVE,
            is_email_verified=is_email(key),
            is_mobile_verified=not is_email(key),
            created_at=now,
            updated_at=now,
        )

        try:
            user = self.user_store.create_user(record)
        except UniquenessViolation:
            logger.info("Lost registration race for identity")
            return fail(ErrorCode.IDENTITY_ALREADY_REGISTERED)

        self.verification_store.delete_code(key)
        logger.info("Registered user %s", user.id)

        token = self.tokens.issue(user.id, user.role.value)
        return Success(
            AuthenticatedSession(
                user=user.without_credential(),
                token=token,
                expires_in_seconds=self.tokens.session_ttl_seconds,
            )
        )

    def state_of(self, identity: str) -> RegistrationState:
        """Current registration state of ``identity`` (for diagnostics)."""
        key = normalize_identity(identity)
        if self.user_store.find_by_identity(key) is not None:
            return RegistrationState.FINALIZED
        if self.verification_store.is_verified(key):
            return RegistrationState.CODE_VERIFIED
        if self.verification_store.check_code(key) is not None:
            return RegistrationState.CODE_SENT
        return RegistrationState.UNSTARTED

    def _secondary_keys(self, key: str, profile: ProfileFields) -> tuple[str, ...]:
        """
        Normalize the profile's other contact channel.

        For an email identity that is the phone, and vice versa. A profile
        value for the identity's own channel must match the identity.
        """
        if is_email(key):
            own, other, normalize_other = profile.email, profile.phone, normalize_phone
            own_normalized = normalize_email(own) if own else None
        else:
            own, other, normalize_other = profile.phone, profile.email, normalize_email
            own_normalized = normalize_phone(own) if own else None

        if own_normalized is not None and own_normalized != key:
            raise InvalidIdentity("Profile contact does not match identity")
        if not other:
            return ()
        return (normalize_other(other),)

    def _stored_profile(
        self, key: str, profile: ProfileFields, secondary: tuple[str, ...]
    ) -> ProfileFields:
        """Profile as stored with the code: names plus the normalized other channel."""
        other = secondary[0] if secondary else None
        return ProfileFields(
            first_name=profile.first_name,
            last_name=profile.last_name,
            email=None if is_email(key) else other,
            phone=other if is_email(key) else None,
        )

    def _identity_taken(self, *keys: str) -> bool:
        return any(self.user_store.find_by_identity(k) is not None for k in keys)

    def _token_matches(self, registration_token: str, key: str) -> bool:
        try:
            claims = self.tokens.verify(registration_token, purpose=REGISTRATION)
        except InvalidToken:
            return False
        return claims.subject_id == key
