"""
In-process adapters - Implement VerificationStore and UserStore protocols.

Backed by dictionaries guarded by a lock. Suitable for tests and
single-process development; state does not survive a restart and is not
shared between worker processes.
"""

import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

from shopwise_auth.domain.exceptions import UniquenessViolation
from shopwise_auth.domain.models import ProfileFields, UserRecord, VerificationRecord

USER_PATCHABLE_FIELDS = frozenset(
    {
        "first_name",
        "last_name",
        "role",
        "status",
        "is_email_verified",
        "is_mobile_verified",
        "last_login",
    }
)


class InMemoryVerificationStore:
    """
    Implements VerificationStore protocol with a locked dict.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Expiry is lazy: records are dropped when read after their deadline
    or by purge_expired().
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._records: dict[str, VerificationRecord] = {}
        self._lock = threading.Lock()

    def set_code(
        self, key: str, code: str, ttl_seconds: int, profile: ProfileFields | None = None
    ) -> None:
        now = self._clock()
        with self._lock:
            self._records[key] = VerificationRecord(
                identity_key=key,
                code=code,
                created_at=now,
                expires_at=now + ttl_seconds,
                profile=profile,
            )

    def _live(self, key: str) -> VerificationRecord | None:
        # Caller holds the lock
        record = self._records.get(key)
        if record is None:
            return None
        if record.is_expired(self._clock()):
            del self._records[key]
            return None
        return record

    def check_code(self, key: str) -> str | None:
        with self._lock:
            record = self._live(key)
            return record.code if record is not None else None

    def mark_verified(self, key: str) -> None:
        with self._lock:
            record = self._live(key)
            if record is not None:
                record.verified = True

    def is_verified(self, key: str) -> bool:
        with self._lock:
            record = self._live(key)
            return record is not None and record.verified

    def pending_profile(self, key: str) -> ProfileFields | None:
        with self._lock:
            record = self._live(key)
            return record.profile if record is not None else None

    def delete_code(self, key: str, code: str | None = None) -> None:
        with self._lock:
            record = self._records.get(key)
            if record is None or (code is not None and record.code != code):
                return
            del self._records[key]

    def claim_attempt(self, key: str) -> tuple[str, int] | None:
        with self._lock:
            record = self._live(key)
            if record is None:
                return None
            record.attempt_count += 1
            return record.code, record.attempt_count

    def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [k for k, r in self._records.items() if r.is_expired(now)]
            for key in expired:
                del self._records[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class InMemoryUserStore:
    """
    Implements UserStore protocol with a locked dict.

    Email and phone indexes play the role of unique constraints: the
    check and the insert happen under one lock, so concurrent creates for
    the same identity leave exactly one record.
    """

    def __init__(self) -> None:
        self._users: dict[str, UserRecord] = {}
        self._by_email: dict[str, str] = {}
        self._by_phone: dict[str, str] = {}
        self._lock = threading.Lock()

    def find_by_identity(self, key: str) -> UserRecord | None:
        with self._lock:
            user_id = self._by_email.get(key) or self._by_phone.get(key)
            return self._users.get(user_id) if user_id else None

    def find_by_id(self, user_id: str) -> UserRecord | None:
        with self._lock:
            return self._users.get(user_id)

    def create_user(self, record: UserRecord) -> UserRecord:
        with self._lock:
            if record.id in self._users:
                raise UniquenessViolation("id")
            if record.email is not None and record.email in self._by_email:
                raise UniquenessViolation("email")
            if record.phone is not None and record.phone in self._by_phone:
                raise UniquenessViolation("phone")

            now = datetime.now(timezone.utc)
            stored = replace(
                record,
                created_at=record.created_at or now,
                updated_at=record.updated_at or now,
            )
            self._users[stored.id] = stored
            if stored.email is not None:
                self._by_email[stored.email] = stored.id
            if stored.phone is not None:
                self._by_phone[stored.phone] = stored.id
            return stored

    def update_user(self, user_id: str, patch: Mapping[str, Any]) -> UserRecord | None:
        unknown = set(patch) - USER_PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not patchable: {sorted(unknown)}")
        with self._lock:
            current = self._users.get(user_id)
            if current is None:
                return None
            updated = replace(current, **patch, updated_at=datetime.now(timezone.utc))
            self._users[user_id] = updated
            return updated
