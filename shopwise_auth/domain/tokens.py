"""
Signed bearer tokens - PyJWT issuer and verifier.

Tokens are stateless HS256 JWTs. The signing secret is process-wide and
fixed for the lifetime of the issuer. A ``typ`` claim separates session
tokens from the short-lived registration tokens handed out after code
verification, so one can never be replayed as the other.
"""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import jwt

from .exceptions import InvalidToken
from .models import SessionClaims

SESSION = "session"
REGISTRATION = "registration"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenIssuer:
    """Issues and verifies signed tokens carrying identity claims."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        session_ttl_seconds: int = 3600,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self.session_ttl_seconds = session_ttl_seconds
        self._clock = clock

    def issue(
        self,
        subject_id: str,
        role: str | None = None,
        ttl_seconds: int | None = None,
        purpose: str = SESSION,
    ) -> str:
        """Sign a token for ``subject_id`` expiring after ``ttl_seconds``."""
        ttl = self.session_ttl_seconds if ttl_seconds is None else ttl_seconds
        # JWT timestamps have second resolution
        issued_at = self._clock().replace(microsecond=0)
        payload = {
            "sub": subject_id,
            "typ": purpose,
            "iat": issued_at,
            "exp": issued_at + timedelta(seconds=ttl),
        }
        if role is not None:
            payload["role"] = role
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str, purpose: str = SESSION) -> SessionClaims:
        """
        Verify signature, expiry and purpose of ``token``.

        Raises:
            InvalidToken: on any failure; the payload is never trusted
                unless the signature checks out
        """
        try:
            data = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "iat", "exp", "typ"]},
            )
        except jwt.InvalidTokenError as e:
            raise InvalidToken("Not a valid token") from e

        if data["typ"] != purpose:
            raise InvalidToken("Token issued for another purpose")

        return SessionClaims(
            subject_id=data["sub"],
            role=data.get("role"),
            issued_at=datetime.fromtimestamp(data["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(data["exp"], tz=timezone.utc),
            purpose=data["typ"],
        )
