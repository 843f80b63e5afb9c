"""
Credential hashing - bcrypt wrapper.

bcrypt embeds the salt and cost factor in its output, so ``hash`` is
non-deterministic while ``compare`` needs nothing but the stored value.
"""

from dataclasses import dataclass, field

import bcrypt

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_BYTES = 72  # bcrypt input limit


def password_is_acceptable(password: str) -> bool:
    """Length policy: at least 6 characters, at most 72 bytes of UTF-8."""
    return len(password) >= MIN_PASSWORD_LENGTH and len(password.encode()) <= MAX_PASSWORD_BYTES


@dataclass
class PasswordHasher:
    """One-way password hashing with a fixed bcrypt cost factor."""

    rounds: int = 10
    _dummy_hash: str | None = field(default=None, init=False, repr=False)

    def hash(self, plaintext: str) -> str:
        return bcrypt.hashpw(plaintext.encode(), bcrypt.gensalt(rounds=self.rounds)).decode()

    def compare(self, plaintext: str, hashed: str | None) -> bool:
        """
        Constant-time comparison via bcrypt.checkpw.

        Returns False for a missing or malformed hash instead of raising.
        """
        if not hashed:
            return False
        try:
            return bcrypt.checkpw(plaintext.encode(), hashed.encode())
        except (ValueError, TypeError):
            return False

    @property
    def dummy_hash(self) -> str:
        """
        Hash compared against when no user exists.

        Keeps login response time independent of account existence.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self.hash("dummy_password_for_timing_safety")
        return self._dummy_hash
