"""
API v1 routes.

Defines REST endpoints for registration, login and account administration.
Every domain operation returns a Success or Failure result; failures are
rendered through ``failure_response`` so each error code always maps to
the same HTTP status.
"""

from fastapi import APIRouter, Depends, Response, status

from shopwise_auth.api.dependencies import (
    TOKEN_COOKIE,
    get_account_service,
    get_app_settings,
    get_authentication_service,
    get_registration_service,
    get_session_token,
)
from shopwise_auth.api.errors import failure_response
from shopwise_auth.api.models import (
    CompleteRegistrationRequest,
    ErrorResponse,
    LoginRequest,
    MessageResponse,
    ResendCodeRequest,
    SendCodeRequest,
    SendCodeResponse,
    SessionResponse,
    StatusChangeRequest,
    UserResponse,
    VerifyCodeRequest,
    VerifyCodeResponse,
)
from shopwise_auth.config.settings import Settings
from shopwise_auth.domain.authentication import AccountService, AuthenticationService
from shopwise_auth.domain.models import ADMIN_ROLES, AuthenticatedSession
from shopwise_auth.domain.registration import RegistrationService
from shopwise_auth.domain.results import Failure

router = APIRouter(tags=["v1"])


def _set_session_cookie(response: Response, session: AuthenticatedSession, settings: Settings) -> None:
    response.set_cookie(
        TOKEN_COOKIE,
        session.token,
        max_age=session.expires_in_seconds,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )


def _session_response(message: str, session: AuthenticatedSession) -> SessionResponse:
    return SessionResponse(
        message=message,
        user=UserResponse.from_record(session.user),
        token=session.token,
        expires_in_seconds=session.expires_in_seconds,
    )


@router.post(
    "/auth/send-otp",
    response_model=SendCodeResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Malformed email or phone"},
        409: {"model": ErrorResponse, "description": "Identity already registered"},
        502: {"model": ErrorResponse, "description": "Code could not be delivered"},
    },
    summary="Send a verification code",
    description="Step 1 of registration. A numeric code is sent to the email "
    "address or phone number. The code is never included in the response.",
)
def send_code(
    request_data: SendCodeRequest,
    service: RegistrationService = Depends(get_registration_service),
):
    result = service.request_code(request_data.identity, request_data.profile())
    if isinstance(result, Failure):
        return failure_response(result)
    return SendCodeResponse(
        message="Verification code sent",
        identity_key=result.value.identity_key,
        expires_in_seconds=result.value.expires_in_seconds,
    )


@router.post(
    "/auth/resend-otp",
    response_model=SendCodeResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Malformed email or phone"},
        409: {"model": ErrorResponse, "description": "Identity already registered"},
        502: {"model": ErrorResponse, "description": "Code could not be delivered"},
    },
    summary="Resend a verification code",
    description="Replaces any previously sent code; only the newest code is accepted.",
)
def resend_code(
    request_data: ResendCodeRequest,
    service: RegistrationService = Depends(get_registration_service),
):
    result = service.request_code(request_data.identity)
    if isinstance(result, Failure):
        return failure_response(result)
    return SendCodeResponse(
        message="Verification code resent",
        identity_key=result.value.identity_key,
        expires_in_seconds=result.value.expires_in_seconds,
    )


@router.post(
    "/auth/verify-otp",
    response_model=VerifyCodeResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Code expired, missing or wrong"},
    },
    summary="Verify a code",
    description="Step 2 of registration. Returns a short-lived registration token.",
)
def verify_code(
    request_data: VerifyCodeRequest,
    service: RegistrationService = Depends(get_registration_service),
):
    result = service.verify_code(request_data.identity, request_data.code)
    if isinstance(result, Failure):
        return failure_response(result)
    return VerifyCodeResponse(
        message="Verification successful. You can now complete your registration",
        identity_key=result.value.identity_key,
        registration_token=result.value.registration_token,
        expires_in_seconds=result.value.expires_in_seconds,
    )


@router.post(
    "/auth/complete-registration",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid identity or password"},
        403: {"model": ErrorResponse, "description": "Code not verified"},
        409: {"model": ErrorResponse, "description": "Identity already registered"},
    },
    summary="Complete registration",
    description="Step 3 of registration. Sets the password, creates the account "
    "and starts a session.",
)
def complete_registration(
    request_data: CompleteRegistrationRequest,
    response: Response,
    service: RegistrationService = Depends(get_registration_service),
    settings: Settings = Depends(get_app_settings),
):
    result = service.finalize_registration(
        request_data.identity,
        request_data.profile(),
        request_data.password,
        registration_token=request_data.registration_token,
    )
    if isinstance(result, Failure):
        return failure_response(result)
    _set_session_cookie(response, result.value, settings)
    return _session_response("Registration successful", result.value)


@router.post(
    "/auth/login",
    response_model=SessionResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid credentials"}},
    summary="Log in",
)
def login(
    request_data: LoginRequest,
    response: Response,
    service: AuthenticationService = Depends(get_authentication_service),
    settings: Settings = Depends(get_app_settings),
):
    result = service.login(request_data.identity, request_data.password)
    if isinstance(result, Failure):
        return failure_response(result)
    _set_session_cookie(response, result.value, settings)
    return _session_response("Login successful", result.value)


@router.post(
    "/auth/logout",
    response_model=MessageResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid or expired token"}},
    summary="Log out",
    description="Validates the session token and clears the session cookie.",
)
def logout(
    response: Response,
    token: str | None = Depends(get_session_token),
    service: AuthenticationService = Depends(get_authentication_service),
):
    result = service.logout(token)
    if isinstance(result, Failure):
        return failure_response(result)
    response.delete_cookie(TOKEN_COOKIE, httponly=True, samesite="strict")
    return MessageResponse(message="Logged out successfully")


@router.get(
    "/auth/me",
    response_model=UserResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid or expired token"},
        403: {"model": ErrorResponse, "description": "Account not active"},
    },
    summary="Current user",
)
def me(
    token: str | None = Depends(get_session_token),
    service: AuthenticationService = Depends(get_authentication_service),
):
    result = service.current_user(token)
    if isinstance(result, Failure):
        return failure_response(result)
    return UserResponse.from_record(result.value)


@router.post(
    "/admin/login",
    response_model=SessionResponse,
    tags=["admin"],
    responses={401: {"model": ErrorResponse, "description": "Invalid credentials"}},
    summary="Admin log in",
    description="Same as /auth/login but only admin and super_admin accounts may log in.",
)
def admin_login(
    request_data: LoginRequest,
    response: Response,
    service: AuthenticationService = Depends(get_authentication_service),
    settings: Settings = Depends(get_app_settings),
):
    result = service.login(request_data.identity, request_data.password, allowed_roles=ADMIN_ROLES)
    if isinstance(result, Failure):
        return failure_response(result)
    _set_session_cookie(response, result.value, settings)
    return _session_response("Login successful", result.value)


@router.patch(
    "/admin/users/{user_id}/status",
    response_model=UserResponse,
    tags=["admin"],
    responses={
        401: {"model": ErrorResponse, "description": "Invalid or expired token"},
        403: {"model": ErrorResponse, "description": "Not an administrator"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
    summary="Change account status",
)
def change_status(
    user_id: str,
    request_data: StatusChangeRequest,
    token: str | None = Depends(get_session_token),
    service: AccountService = Depends(get_account_service),
):
    result = service.change_status(token, user_id, request_data.status)
    if isinstance(result, Failure):
        return failure_response(result)
    return UserResponse.from_record(result.value)
