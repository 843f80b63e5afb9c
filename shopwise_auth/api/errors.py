"""
Error mapping - Domain failures and infrastructure faults to HTTP responses.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from shopwise_auth.api.models import ErrorResponse
from shopwise_auth.domain.exceptions import InfrastructureError
from shopwise_auth.domain.results import ErrorCode, Failure

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[ErrorCode, int] = {
    ErrorCode.INVALID_IDENTITY: status.HTTP_400_BAD_REQUEST,
    ErrorCode.IDENTITY_ALREADY_REGISTERED: status.HTTP_409_CONFLICT,
    ErrorCode.CODE_EXPIRED_OR_MISSING: status.HTTP_400_BAD_REQUEST,
    ErrorCode.CODE_MISMATCH: status.HTTP_400_BAD_REQUEST,
    ErrorCode.NOT_VERIFIED: status.HTTP_403_FORBIDDEN,
    ErrorCode.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.INVALID_TOKEN: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.ACCOUNT_NOT_ACTIVE: status.HTTP_403_FORBIDDEN,
    ErrorCode.DELIVERY_ERROR: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.INVALID_PASSWORD: status.HTTP_400_BAD_REQUEST,
    ErrorCode.PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorCode.USER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
}


def failure_response(failure: Failure) -> JSONResponse:
    """Render a domain Failure with its stable code."""
    body = ErrorResponse(detail=failure.message, code=failure.code.value)
    return JSONResponse(status_code=ERROR_STATUS[failure.code], content=body.model_dump())


async def infrastructure_error_handler(request: Request, exc: InfrastructureError) -> JSONResponse:
    """Opaque 500 for store outages; details go to the log only."""
    logger.error("Infrastructure failure on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(InfrastructureError, infrastructure_error_handler)
