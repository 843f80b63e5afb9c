"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A controllable clock driving in-memory code expiry
- In-memory stores
- Domain services wired with a mocked notification sender
- A PostgreSQL pool for integration tests (skipped when no server is reachable)
"""

from collections.abc import Generator
from unittest.mock import Mock

import psycopg
import pytest
from psycopg_pool import ConnectionPool, PoolTimeout

from shopwise_auth.adapters.repository.memory import InMemoryUserStore, InMemoryVerificationStore
from shopwise_auth.adapters.repository.postgres import run_migrations
from shopwise_auth.config.settings import Settings
from shopwise_auth.domain.authentication import AccountService, AuthenticationService
from shopwise_auth.domain.passwords import PasswordHasher
from shopwise_auth.domain.registration import RegistrationService
from shopwise_auth.domain.tokens import TokenIssuer
from tests.helpers import TEST_SECRET, FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def verification_store(clock: FakeClock) -> InMemoryVerificationStore:
    return InMemoryVerificationStore(clock=clock.time)


@pytest.fixture
def user_store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    """Minimum bcrypt cost keeps the suite fast."""
    return PasswordHasher(rounds=4)


@pytest.fixture
def tokens() -> TokenIssuer:
    return TokenIssuer(TEST_SECRET, session_ttl_seconds=3600)


@pytest.fixture
def notifier() -> Mock:
    return Mock()


@pytest.fixture
def registration_service(
    verification_store: InMemoryVerificationStore,
    user_store: InMemoryUserStore,
    notifier: Mock,
    hasher: PasswordHasher,
    tokens: TokenIssuer,
) -> RegistrationService:
    return RegistrationService(
        verification_store=verification_store,
        user_store=user_store,
        notifier=notifier,
        hasher=hasher,
        tokens=tokens,
    )


@pytest.fixture
def authentication_service(
    user_store: InMemoryUserStore, hasher: PasswordHasher, tokens: TokenIssuer
) -> AuthenticationService:
    return AuthenticationService(user_store=user_store, hasher=hasher, tokens=tokens)


@pytest.fixture
def account_service(
    authentication_service: AuthenticationService, user_store: InMemoryUserStore
) -> AccountService:
    return AccountService(authentication=authentication_service, user_store=user_store)


@pytest.fixture(scope="session")
def postgres_pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool against DATABASE_URL and apply migrations."""
    settings = Settings(jwt_secret=TEST_SECRET)
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=1,
        max_size=10,
        open=True,
    )
    try:
        pool.wait(timeout=5)
    except (PoolTimeout, psycopg.OperationalError):
        pool.close()
        pytest.skip("PostgreSQL is not reachable")
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def clean_postgres(postgres_pool: ConnectionPool) -> ConnectionPool:
    """Empty both tables before the test."""
    with postgres_pool.connection() as conn:
        conn.execute("DELETE FROM verification_codes")
        conn.execute("DELETE FROM users")
        conn.commit()
    return postgres_pool
