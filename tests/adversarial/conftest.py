"""
Shared fixtures for adversarial tests.

Every adversarial test runs against both store backends: the in-memory
stores and PostgreSQL (skipped when no server is reachable).
"""

import pytest

from shopwise_auth.adapters.repository.memory import InMemoryUserStore, InMemoryVerificationStore
from shopwise_auth.adapters.repository.postgres import (
    PostgresUserStore,
    PostgresVerificationStore,
)


@pytest.fixture(params=["memory", "postgres"])
def backend(request: pytest.FixtureRequest) -> str:
    return request.param


@pytest.fixture
def verification_store(backend: str, request: pytest.FixtureRequest):
    if backend == "postgres":
        return PostgresVerificationStore(request.getfixturevalue("clean_postgres"))
    return InMemoryVerificationStore()


@pytest.fixture
def user_store(backend: str, request: pytest.FixtureRequest):
    if backend == "postgres":
        return PostgresUserStore(request.getfixturevalue("clean_postgres"))
    return InMemoryUserStore()
