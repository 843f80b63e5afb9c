"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from shopwise_auth.domain.models import AccountStatus, ProfileFields, UserRecord


class SendCodeRequest(BaseModel):
    """Request model for registration step 1."""

    identity: str = Field(..., min_length=1, description="Email address or phone number")
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None

    def profile(self) -> ProfileFields:
        return ProfileFields(
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            phone=self.phone,
        )


class ResendCodeRequest(BaseModel):
    """Request model for resending a verification code."""

    identity: str = Field(..., min_length=1)


class SendCodeResponse(BaseModel):
    """Response model for a delivered code. Never contains the code."""

    message: str
    identity_key: str
    expires_in_seconds: int


class VerifyCodeRequest(BaseModel):
    """Request model for registration step 2."""

    identity: str = Field(..., min_length=1)
    code: str = Field(
        ...,
        pattern=r"^\d{4,10}$",
        description="Numeric verification code",
    )

    @field_validator("code", mode="before")
    @classmethod
    def code_as_string(cls, value: Any) -> Any:
        """Accept numeric JSON values as well as strings."""
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        if isinstance(value, str):
            return value.strip()
        return value


class VerifyCodeResponse(BaseModel):
    """Response model for a verified code."""

    message: str
    identity_key: str
    registration_token: str
    expires_in_seconds: int


class CompleteRegistrationRequest(BaseModel):
    """Request model for registration step 3."""

    identity: str = Field(..., min_length=1)
    registration_token: str | None = None
    first_name: str | None = Field(
        default=None, min_length=1, description="Defaults to the name sent with the code request"
    )
    last_name: str | None = Field(default=None, min_length=1)
    email: str | None = None
    phone: str | None = None
    password: str = Field(..., min_length=6, max_length=72, description="Password (6-72 characters)")
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self) -> "CompleteRegistrationRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self

    def profile(self) -> ProfileFields:
        return ProfileFields(
            first_name=self.first_name.strip() if self.first_name else None,
            last_name=self.last_name.strip() if self.last_name else None,
            email=self.email,
            phone=self.phone,
        )


class LoginRequest(BaseModel):
    """Request model for password login."""

    identity: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    """Public view of a user record (no credential)."""

    id: str
    email: str | None
    phone: str | None
    first_name: str | None
    last_name: str | None
    role: str
    status: str
    is_email_verified: bool
    is_mobile_verified: bool
    created_at: datetime | None
    last_login: datetime | None

    @classmethod
    def from_record(cls, user: UserRecord) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            phone=user.phone,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role.value,
            status=user.status.value,
            is_email_verified=user.is_email_verified,
            is_mobile_verified=user.is_mobile_verified,
            created_at=user.created_at,
            last_login=user.last_login,
        )


class SessionResponse(BaseModel):
    """Response model for registration completion and login."""

    message: str
    user: UserResponse
    token: str
    expires_in_seconds: int


class MessageResponse(BaseModel):
    message: str


class StatusChangeRequest(BaseModel):
    """Request model for an administrative status change."""

    status: AccountStatus


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
    code: str | None = None
