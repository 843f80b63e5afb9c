"""Repository adapters - User and verification code storage."""

from .memory import InMemoryUserStore, InMemoryVerificationStore
from .postgres import PostgresUserStore, PostgresVerificationStore, run_migrations

__all__ = [
    "InMemoryUserStore",
    "InMemoryVerificationStore",
    "PostgresUserStore",
    "PostgresVerificationStore",
    "run_migrations",
]
