"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from collections.abc import Mapping
from typing import Any, Protocol

from .models import ProfileFields, UserRecord


class VerificationStore(Protocol):
    """
    Port interface for short-lived verification codes.

    Exactly one record exists per identity key (last write wins).
    None of these methods raise for missing or expired records; only
    infrastructure faults propagate (as InfrastructureError).
    """

    def set_code(
        self, key: str, code: str, ttl_seconds: int, profile: ProfileFields | None = None
    ) -> None:
        """
        Store ``code`` for ``key``, replacing any previous record.

        Resets the verified flag and the attempt counter. ``profile`` is
        kept with the record until it is deleted or replaced.
        """
        ...

    def check_code(self, key: str) -> str | None:
        """
        Return the live code for ``key``.

        Returns None when no record exists. An expired record is deleted
        as a side effect and None is returned.
        """
        ...

    def mark_verified(self, key: str) -> None:
        """Set the verified flag. No-op when absent. Expiry is unchanged."""
        ...

    def is_verified(self, key: str) -> bool:
        """True only for a live record whose verified flag is set."""
        ...

    def pending_profile(self, key: str) -> ProfileFields | None:
        """Profile stored with the live record, or None."""
        ...

    def delete_code(self, key: str, code: str | None = None) -> None:
        """
        Remove the record for ``key``. Idempotent.

        When ``code`` is given the record is removed only if it still holds
        that code, so a newer code written in between survives.
        """
        ...

    def claim_attempt(self, key: str) -> tuple[str, int] | None:
        """
        Count one verification attempt against the live record.

        The counter is incremented and read together with the code in one
        atomic step, before the caller compares anything.

        Returns:
            (code, attempt number), or None when no live record exists.
        """
        ...

    def purge_expired(self) -> int:
        """Delete every expired record and return how many were removed."""
        ...


class UserStore(Protocol):
    """Port interface for durable user records."""

    def find_by_identity(self, key: str) -> UserRecord | None:
        """
        Look up a user by normalized email or phone.

        The returned record includes ``password_hash``.
        """
        ...

    def find_by_id(self, user_id: str) -> UserRecord | None:
        """Look up a user by primary key."""
        ...

    def create_user(self, record: UserRecord) -> UserRecord:
        """
        Persist a new user.

        Raises:
            UniquenessViolation: email or phone already used by another user
        """
        ...

    def update_user(self, user_id: str, patch: Mapping[str, Any]) -> UserRecord | None:
        """
        Apply ``patch`` to a user and return the updated record.

        Returns None if ``user_id`` does not exist.
        """
        ...


class NotificationSender(Protocol):
    """Port interface for code delivery (email or SMS)."""

    def send(self, identity_key: str, message: str) -> None:
        """
        Deliver ``message`` to the channel named by ``identity_key``.

        Raises:
            DeliveryError: message could not be handed to the channel
        """
        ...
