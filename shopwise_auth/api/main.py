"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures exception handlers and lifespan events.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator

from fastapi import FastAPI, Request
from psycopg_pool import ConnectionPool

from shopwise_auth.adapters.notify.console import ConsoleNotificationSender
from shopwise_auth.adapters.repository.memory import InMemoryUserStore, InMemoryVerificationStore
from shopwise_auth.adapters.repository.postgres import (
    PostgresUserStore,
    PostgresVerificationStore,
    connection,
    run_migrations,
)
from shopwise_auth.api.errors import install_error_handlers
from shopwise_auth.api.v1 import router as v1_router
from shopwise_auth.config.settings import get_settings
from shopwise_auth.domain.exceptions import InfrastructureError
from shopwise_auth.domain.passwords import PasswordHasher
from shopwise_auth.domain.ports import VerificationStore
from shopwise_auth.domain.tokens import TokenIssuer

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Registration and login API v1 - Verify a contact channel, "
        "set a password, receive a session token",
    },
    {
        "name": "admin",
        "description": "Administrator login and account status management",
    },
]


async def sweep_expired_codes(store: VerificationStore, interval_seconds: int) -> None:
    """Periodically purge expired verification codes to bound storage."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            removed = await asyncio.to_thread(store.purge_expired)
        except InfrastructureError:
            logger.warning("Verification code sweep skipped: store unavailable")
            continue
        if removed:
            logger.info("Purged %d expired verification code(s)", removed)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Validates settings (a missing signing secret aborts startup)
    - Creates the database connection pool and runs migrations
    - Builds the stores, hasher, notifier and token issuer
    - Starts the expired-code sweep
    """
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    logger.info("Starting application...")

    pool: ConnectionPool | None = None
    if settings.storage_backend == "postgres":
        logger.info("Connecting to database...")
        pool = ConnectionPool(
            conninfo=settings.database_url,
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
            open=True,
        )
        logger.info("Running database migrations...")
        run_migrations(pool)
        app.state.user_store = PostgresUserStore(pool)
        app.state.verification_store = PostgresVerificationStore(pool)
    else:
        logger.warning("Using in-memory stores; data is lost on restart")
        app.state.user_store = InMemoryUserStore()
        app.state.verification_store = InMemoryVerificationStore()

    app.state.settings = settings
    app.state.pool = pool
    app.state.notifier = ConsoleNotificationSender()
    app.state.hasher = PasswordHasher(rounds=settings.bcrypt_cost)
    app.state.tokens = TokenIssuer(
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        session_ttl_seconds=settings.session_ttl_seconds,
    )

    sweeper: asyncio.Task | None = None
    if settings.verification_sweep_seconds > 0:
        sweeper = asyncio.create_task(
            sweep_expired_codes(app.state.verification_store, settings.verification_sweep_seconds)
        )

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    if sweeper is not None:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
    if pool is not None:
        pool.close()
        logger.info("Database connection pool closed")


app = FastAPI(
    title="shopwise-auth",
    description="Storefront account registration and authentication API",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

install_error_handlers(app)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with database validation.

    Returns 200 OK if application and database are healthy.
    """
    pool = getattr(request.app.state, "pool", None)
    if pool is not None:
        with connection(pool) as conn:
            conn.execute("SELECT 1")

    return {"status": "healthy"}
