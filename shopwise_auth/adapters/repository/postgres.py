"""
PostgreSQL repository adapters - Implement UserStore and VerificationStore.

This module provides the PostgreSQL implementations of the domain's
storage ports using psycopg3 with raw SQL.

Concurrency Design:
-------------------
1. **users.email / users.phone UNIQUE**: the database is the arbiter when
   concurrent finalize calls race for the same identity. A losing INSERT
   surfaces as UniqueViolation and is translated to UniquenessViolation.

2. **verification_codes PRIMARY KEY (identity_key)**: set_code is an
   INSERT ... ON CONFLICT DO UPDATE, so the last writer wins atomically.

3. **Database time**: every expiry decision compares against NOW(), so
   application servers with skewed clocks agree on what is live.

4. **Attempt claims**: claim_attempt increments attempt_count and returns
   the code in one UPDATE ... RETURNING, so concurrent guesses each get a
   distinct attempt number before any comparison.

Connection-level failures (server down, pool exhausted) are raised as
InfrastructureError; nothing else is caught here.
"""

import logging
import uuid
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import asdict
from enum import Enum
from importlib import resources
from importlib.resources.abc import Traversable
from typing import Any

import psycopg
from psycopg import errors, sql
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool, PoolTimeout

from shopwise_auth.adapters.repository.memory import USER_PATCHABLE_FIELDS
from shopwise_auth.domain.exceptions import InfrastructureError, UniquenessViolation
from shopwise_auth.domain.models import AccountStatus, ProfileFields, Role, UserRecord

logger = logging.getLogger(__name__)

MIGRATIONS_PACKAGE = "shopwise_auth.migrations"

# A record is live up to and including its deadline
_LIVE = "expires_at >= NOW()"
_EXPIRED = "expires_at < NOW()"

_USER_COLUMNS = (
    "id, email, phone, password_hash, first_name, last_name, role, status, "
    "is_email_verified, is_mobile_verified, created_at, updated_at, last_login"
)


@contextmanager
def connection(pool: ConnectionPool) -> Iterator[psycopg.Connection]:
    """Borrow a pooled connection, translating connectivity failures."""
    try:
        with pool.connection() as conn:
            yield conn
    except (psycopg.OperationalError, PoolTimeout) as e:
        logger.error("Database unavailable: %s", e)
        raise InfrastructureError("Database unavailable") from e


def _row_to_user(row: Mapping[str, Any]) -> UserRecord:
    return UserRecord(
        id=str(row["id"]),
        email=row["email"],
        phone=row["phone"],
        password_hash=row["password_hash"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        role=Role(row["role"]),
        status=AccountStatus(row["status"]),
        is_email_verified=row["is_email_verified"],
        is_mobile_verified=row["is_mobile_verified"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        last_login=row["last_login"],
    )


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


def _db_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class PostgresUserStore:
    """
    Implements UserStore protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize store with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def find_by_identity(self, key: str) -> UserRecord | None:
        query = f"SELECT {_USER_COLUMNS} FROM users WHERE email = %s OR phone = %s LIMIT 1"
        with connection(self._pool) as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(query, (key, key))
            row = cursor.fetchone()
        return _row_to_user(row) if row is not None else None

    def find_by_id(self, user_id: str) -> UserRecord | None:
        if not _is_uuid(user_id):
            return None
        query = f"SELECT {_USER_COLUMNS} FROM users WHERE id = %s"
        with connection(self._pool) as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(query, (user_id,))
            row = cursor.fetchone()
        return _row_to_user(row) if row is not None else None

    def create_user(self, record: UserRecord) -> UserRecord:
        """
        Insert a new user.

        Raises:
            UniquenessViolation: email or phone collides with an existing row
        """
        query = f"""
            INSERT INTO users (
                id, email, phone, password_hash, first_name, last_name, role, status,
                is_email_verified, is_mobile_verified, created_at, updated_at
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s,
                    COALESCE(%s, NOW()), COALESCE(%s, NOW()))
            RETURNING {_USER_COLUMNS}
        """
        params = (
            record.id,
            record.email,
            record.phone,
            record.password_hash,
            record.first_name,
            record.last_name,
            record.role.value,
            record.status.value,
            record.is_email_verified,
            record.is_mobile_verified,
            record.created_at,
            record.updated_at,
        )
        try:
            with connection(self._pool) as conn, conn.cursor(row_factory=dict_row) as cursor:
                cursor.execute(query, params)
                row = cursor.fetchone()
                conn.commit()
        except errors.UniqueViolation as e:
            raise UniquenessViolation(e.diag.constraint_name or "users") from e
        return _row_to_user(row)

    def update_user(self, user_id: str, patch: Mapping[str, Any]) -> UserRecord | None:
        unknown = set(patch) - USER_PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not patchable: {sorted(unknown)}")
        if not patch:
            return self.find_by_id(user_id)
        if not _is_uuid(user_id):
            return None

        assignments = sql.SQL(", ").join(
            sql.SQL("{} = %s").format(sql.Identifier(name)) for name in patch
        )
        query = sql.SQL(
            "UPDATE users SET {}, updated_at = NOW() WHERE id = %s RETURNING " + _USER_COLUMNS
        ).format(assignments)
        params = [_db_value(value) for value in patch.values()] + [user_id]

        with connection(self._pool) as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(query, params)
            row = cursor.fetchone()
            conn.commit()
        return _row_to_user(row) if row is not None else None


class PostgresVerificationStore:
    """
    Implements VerificationStore protocol via psycopg3.

    Expired rows are removed lazily by check_code() and in bulk by
    purge_expired().
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def set_code(
        self, key: str, code: str, ttl_seconds: int, profile: ProfileFields | None = None
    ) -> None:
        query = """
            INSERT INTO verification_codes
                (identity_key, code, verified, attempt_count, profile, created_at, expires_at)
            VALUES (%s, %s, FALSE, 0, %s, NOW(), NOW() + %s * INTERVAL '1 second')
            ON CONFLICT (identity_key) DO UPDATE
            SET code = EXCLUDED.code,
                verified = FALSE,
                attempt_count = 0,
                profile = EXCLUDED.profile,
                created_at = EXCLUDED.created_at,
                expires_at = EXCLUDED.expires_at
        """
        stored_profile = Jsonb(asdict(profile)) if profile is not None else None
        with connection(self._pool) as conn:
            conn.execute(query, (key, code, stored_profile, ttl_seconds))
            conn.commit()

    def check_code(self, key: str) -> str | None:
        with connection(self._pool) as conn, conn.cursor() as cursor:
            # Lazy expiry: drop this key's record if its deadline has passed
            cursor.execute(
                f"DELETE FROM verification_codes WHERE identity_key = %s AND {_EXPIRED}",
                (key,),
            )
            cursor.execute(
                f"SELECT code FROM verification_codes WHERE identity_key = %s AND {_LIVE}",
                (key,),
            )
            row = cursor.fetchone()
            conn.commit()
        return row[0] if row is not None else None

    def mark_verified(self, key: str) -> None:
        with connection(self._pool) as conn:
            conn.execute(
                f"UPDATE verification_codes SET verified = TRUE WHERE identity_key = %s AND {_LIVE}",
                (key,),
            )
            conn.commit()

    def is_verified(self, key: str) -> bool:
        with connection(self._pool) as conn, conn.cursor() as cursor:
            cursor.execute(
                f"SELECT verified FROM verification_codes WHERE identity_key = %s AND {_LIVE}",
                (key,),
            )
            row = cursor.fetchone()
        return bool(row[0]) if row is not None else False

    def pending_profile(self, key: str) -> ProfileFields | None:
        with connection(self._pool) as conn, conn.cursor() as cursor:
            cursor.execute(
                f"SELECT profile FROM verification_codes WHERE identity_key = %s AND {_LIVE}",
                (key,),
            )
            row = cursor.fetchone()
        if row is None or row[0] is None:
            return None
        return ProfileFields(**row[0])

    def delete_code(self, key: str, code: str | None = None) -> None:
        with connection(self._pool) as conn:
            if code is None:
                conn.execute("DELETE FROM verification_codes WHERE identity_key = %s", (key,))
            else:
                conn.execute(
                    "DELETE FROM verification_codes WHERE identity_key = %s AND code = %s",
                    (key, code),
                )
            conn.commit()

    def claim_attempt(self, key: str) -> tuple[str, int] | None:
        # The row lock taken by UPDATE serializes concurrent claims
        with connection(self._pool) as conn, conn.cursor() as cursor:
            cursor.execute(
                f"""
                UPDATE verification_codes SET attempt_count = attempt_count + 1
                WHERE identity_key = %s AND {_LIVE}
                RETURNING code, attempt_count
                """,
                (key,),
            )
            row = cursor.fetchone()
            conn.commit()
        return (row[0], row[1]) if row is not None else None

    def purge_expired(self) -> int:
        with connection(self._pool) as conn, conn.cursor() as cursor:
            cursor.execute(f"DELETE FROM verification_codes WHERE {_EXPIRED}")
            removed = cursor.rowcount
            conn.commit()
        return removed


def migration_files() -> list[Traversable]:
    """SQL migrations shipped in the ``shopwise_auth.migrations`` package, in order."""
    package = resources.files(MIGRATIONS_PACKAGE)
    return sorted(
        (entry for entry in package.iterdir() if entry.name.endswith(".sql")),
        key=lambda entry: entry.name,
    )


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files shipped with the package.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance

    Raises:
        RuntimeError: no migration files were found, or one of them failed
    """
    sql_files = migration_files()

    if not sql_files:
        raise RuntimeError(f"No migration files found in {MIGRATIONS_PACKAGE}")

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            sql_content = sql_file.read_text(encoding="utf-8")

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info(f"Migration complete: {sql_file.name}")
        except Exception as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
