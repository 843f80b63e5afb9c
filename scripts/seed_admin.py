"""
Create the default super-admin account.

Usage:
    python scripts/seed_admin.py --email admin@shopwise.com --phone 9999999999

The password is read from ADMIN_PASSWORD or prompted for. The database is
taken from DATABASE_URL; the token signing secret is not needed. Running the
script twice is harmless: an existing account with the same email or phone
is left untouched.
"""

import argparse
import getpass
import logging
import os
import sys
import uuid

from psycopg_pool import ConnectionPool

from shopwise_auth.adapters.repository.postgres import PostgresUserStore, run_migrations
from shopwise_auth.config.settings import StorageSettings
from shopwise_auth.domain.exceptions import UniquenessViolation
from shopwise_auth.domain.identity import normalize_email, normalize_phone
from shopwise_auth.domain.models import AccountStatus, Role, UserRecord
from shopwise_auth.domain.passwords import PasswordHasher, password_is_acceptable

logger = logging.getLogger("seed_admin")


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--email", default="admin@shopwise.com")
    parser.add_argument("--phone", default="9999999999")
    parser.add_argument("--first-name", default="Super")
    parser.add_argument("--last-name", default="Admin")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    settings = StorageSettings()

    password = os.environ.get("ADMIN_PASSWORD") or getpass.getpass("Admin password: ")
    if not password_is_acceptable(password):
        logger.error("Password must be between 6 characters and 72 bytes long")
        return 1

    record = UserRecord(
        id=str(uuid.uuid4()),
        email=normalize_email(args.email),
        phone=normalize_phone(args.phone),
        password_hash=PasswordHasher(rounds=settings.bcrypt_cost).hash(password),
        first_name=args.first_name,
        last_name=args.last_name,
        role=Role.SUPER_ADMIN,
        status=AccountStatus.ACTIVE,
        is_email_verified=True,
        is_mobile_verified=True,
    )

    with ConnectionPool(conninfo=settings.database_url, min_size=1, max_size=1, open=True) as pool:
        run_migrations(pool)
        try:
            admin = PostgresUserStore(pool).create_user(record)
        except UniquenessViolation:
            logger.info("Admin already exists with email %s, skipping", record.email)
            return 0

    logger.info("Admin created: id=%s email=%s role=%s", admin.id, admin.email, admin.role.value)
    return 0


if __name__ == "__main__":
    sys.exit(main())
