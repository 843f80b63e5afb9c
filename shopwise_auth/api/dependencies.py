"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting domain services
into routes. The stores, hasher, notifier and token issuer are created
once during app lifespan startup and stored in app.state.
"""

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from shopwise_auth.config.settings import Settings
from shopwise_auth.domain.authentication import AccountService, AuthenticationService
from shopwise_auth.domain.registration import RegistrationService

TOKEN_COOKIE = "token"


def get_app_settings(request: Request) -> Settings:
    """Get the settings the application was started with."""
    return request.app.state.settings


def get_registration_service(request: Request) -> RegistrationService:
    """
    Create registration service with injected dependencies.

    Wires together the stores, notifier, hasher and token issuer.
    """
    state = request.app.state
    settings: Settings = state.settings
    return RegistrationService(
        verification_store=state.verification_store,
        user_store=state.user_store,
        notifier=state.notifier,
        hasher=state.hasher,
        tokens=state.tokens,
        code_length=settings.code_length,
        code_ttl_seconds=settings.code_ttl_seconds,
        max_verify_attempts=settings.max_verify_attempts,
        registration_token_ttl_seconds=settings.registration_token_ttl_seconds,
    )


def get_authentication_service(request: Request) -> AuthenticationService:
    """Create authentication service with injected dependencies."""
    state = request.app.state
    return AuthenticationService(
        user_store=state.user_store,
        hasher=state.hasher,
        tokens=state.tokens,
    )


def get_account_service(
    request: Request,
    authentication: AuthenticationService = Depends(get_authentication_service),
) -> AccountService:
    """Create account administration service."""
    return AccountService(authentication=authentication, user_store=request.app.state.user_store)


# Bearer security scheme for OpenAPI documentation. Missing headers are
# allowed so the cookie can be used instead.
http_bearer = HTTPBearer(auto_error=False)


def get_session_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
) -> str | None:
    """
    Extract the session token from the request.

    The Authorization: Bearer header wins over the ``token`` cookie.
    """
    if credentials is not None:
        return credentials.credentials
    return request.cookies.get(TOKEN_COOKIE)
