"""
Unit tests for API v1 routes.

Tests endpoint responses with mocked domain services.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from shopwise_auth.api.dependencies import (
    get_account_service,
    get_authentication_service,
    get_registration_service,
)
from shopwise_auth.api.errors import install_error_handlers
from shopwise_auth.api.v1.routes import router
from shopwise_auth.config.settings import Settings
from shopwise_auth.domain.authentication import AccountService, AuthenticationService
from shopwise_auth.domain.exceptions import InfrastructureError
from shopwise_auth.domain.models import (
    ADMIN_ROLES,
    AccountStatus,
    AuthenticatedSession,
    CodeSent,
    CodeVerified,
    LoggedOut,
    ProfileFields,
    UserRecord,
)
from shopwise_auth.domain.registration import RegistrationService
from shopwise_auth.domain.results import ErrorCode, Success, fail
from tests.helpers import TEST_SECRET

USER = UserRecord(
    id="3f1c2d7e-0000-4000-8000-000000000001",
    email="a@x.com",
    phone=None,
    password_hash=None,
    first_name="Asha",
    last_name="Rao",
    is_email_verified=True,
    created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
)

SESSION = AuthenticatedSession(user=USER, token="signed.session.token", expires_in_seconds=3600)

REGISTRATION_BODY = {
    "identity": "a@x.com",
    "first_name": "Asha",
    "last_name": "Rao",
    "password": "Secret123",
    "confirm_password": "Secret123",
}


@pytest.fixture
def app() -> FastAPI:
    """Create test FastAPI application."""
    test_app = FastAPI()
    install_error_handlers(test_app)
    test_app.include_router(router, prefix="/v1")
    test_app.state.settings = Settings(jwt_secret=TEST_SECRET, _env_file=None)
    return test_app


@pytest.fixture
def registration(app: FastAPI):
    service = MagicMock(spec=RegistrationService)
    app.dependency_overrides[get_registration_service] = lambda: service
    yield service
    app.dependency_overrides.clear()


@pytest.fixture
def authentication(app: FastAPI):
    service = MagicMock(spec=AuthenticationService)
    app.dependency_overrides[get_authentication_service] = lambda: service
    yield service
    app.dependency_overrides.clear()


@pytest.fixture
def accounts(app: FastAPI):
    service = MagicMock(spec=AccountService)
    app.dependency_overrides[get_account_service] = lambda: service
    yield service
    app.dependency_overrides.clear()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create test client for the application."""
    return TestClient(app)


class TestSendCodeEndpoint:
    """Tests for POST /v1/auth/send-otp."""

    def test_success(self, client: TestClient, registration: MagicMock) -> None:
        registration.request_code.return_value = Success(
            CodeSent(identity_key="a@x.com", expires_in_seconds=300)
        )

        response = client.post("/v1/auth/send-otp", json={"identity": "A@x.com", "first_name": "Asha"})

        assert response.status_code == 200
        assert response.json() == {
            "message": "Verification code sent",
            "identity_key": "a@x.com",
            "expires_in_seconds": 300,
        }
        registration.request_code.assert_called_once_with(
            "A@x.com", ProfileFields(first_name="Asha")
        )

    @pytest.mark.parametrize(
        ("code", "status_code"),
        [
            (ErrorCode.INVALID_IDENTITY, 400),
            (ErrorCode.IDENTITY_ALREADY_REGISTERED, 409),
            (ErrorCode.DELIVERY_ERROR, 502),
        ],
    )
    def test_failures(
        self, client: TestClient, registration: MagicMock, code: ErrorCode, status_code: int
    ) -> None:
        registration.request_code.return_value = fail(code)

        response = client.post("/v1/auth/send-otp", json={"identity": "a@x.com"})

        assert response.status_code == status_code
        assert response.json()["code"] == code.value

    def test_missing_identity_returns_422(self, client: TestClient, registration: MagicMock) -> None:
        response = client.post("/v1/auth/send-otp", json={})

        assert response.status_code == 422
        registration.request_code.assert_not_called()


class TestResendCodeEndpoint:
    """Tests for POST /v1/auth/resend-otp."""

    def test_success(self, client: TestClient, registration: MagicMock) -> None:
        registration.request_code.return_value = Success(
            CodeSent(identity_key="a@x.com", expires_in_seconds=300)
        )

        response = client.post("/v1/auth/resend-otp", json={"identity": "a@x.com"})

        assert response.status_code == 200
        assert response.json()["message"] == "Verification code resent"
        registration.request_code.assert_called_once_with("a@x.com")


class TestVerifyCodeEndpoint:
    """Tests for POST /v1/auth/verify-otp."""

    def test_success(self, client: TestClient, registration: MagicMock) -> None:
        registration.verify_code.return_value = Success(
            CodeVerified(
                identity_key="a@x.com", registration_token="reg.token", expires_in_seconds=900
            )
        )

        response = client.post("/v1/auth/verify-otp", json={"identity": "a@x.com", "code": "012345"})

        assert response.status_code == 200
        assert response.json()["registration_token"] == "reg.token"
        registration.verify_code.assert_called_once_with("a@x.com", "012345")

    def test_numeric_code_accepted(self, client: TestClient, registration: MagicMock) -> None:
        """JSON clients may send the code as a number."""
        registration.verify_code.return_value = fail(ErrorCode.CODE_MISMATCH)

        client.post("/v1/auth/verify-otp", json={"identity": "a@x.com", "code": 123456})

        registration.verify_code.assert_called_once_with("a@x.com", "123456")

    @pytest.mark.parametrize("code", ["12a456", "", "1" * 11, True])
    def test_malformed_code_returns_422(
        self, client: TestClient, registration: MagicMock, code: object
    ) -> None:
        response = client.post("/v1/auth/verify-otp", json={"identity": "a@x.com", "code": code})

        assert response.status_code == 422
        registration.verify_code.assert_not_called()

    @pytest.mark.parametrize("code", [ErrorCode.CODE_MISMATCH, ErrorCode.CODE_EXPIRED_OR_MISSING])
    def test_failures_return_400(
        self, client: TestClient, registration: MagicMock, code: ErrorCode
    ) -> None:
        registration.verify_code.return_value = fail(code)

        response = client.post("/v1/auth/verify-otp", json={"identity": "a@x.com", "code": "123456"})

        assert response.status_code == 400
        assert response.json()["code"] == code.value


class TestCompleteRegistrationEndpoint:
    """Tests for POST /v1/auth/complete-registration."""

    def test_success_returns_201_and_sets_cookie(
        self, client: TestClient, registration: MagicMock
    ) -> None:
        registration.finalize_registration.return_value = Success(SESSION)

        response = client.post("/v1/auth/complete-registration", json=REGISTRATION_BODY)

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Registration successful"
        assert body["token"] == "signed.session.token"
        assert body["user"]["role"] == "customer"
        assert "password_hash" not in body["user"]
        cookie = response.headers["set-cookie"]
        assert "token=signed.session.token" in cookie
        assert "HttpOnly" in cookie
        assert "samesite=strict" in cookie.lower()

    def test_passes_profile_and_token(self, client: TestClient, registration: MagicMock) -> None:
        registration.finalize_registration.return_value = Success(SESSION)

        client.post(
            "/v1/auth/complete-registration",
            json={**REGISTRATION_BODY, "first_name": " Asha ", "registration_token": "reg.token"},
        )

        registration.finalize_registration.assert_called_once_with(
            "a@x.com",
            ProfileFields(first_name="Asha", last_name="Rao"),
            "Secret123",
            registration_token="reg.token",
        )

    def test_client_supplied_role_is_ignored(
        self, client: TestClient, registration: MagicMock
    ) -> None:
        registration.finalize_registration.return_value = Success(SESSION)

        response = client.post(
            "/v1/auth/complete-registration", json={**REGISTRATION_BODY, "role": "super_admin"}
        )

        assert response.status_code == 201
        assert response.json()["user"]["role"] == "customer"

    def test_password_mismatch_returns_422(
        self, client: TestClient, registration: MagicMock
    ) -> None:
        response = client.post(
            "/v1/auth/complete-registration",
            json={**REGISTRATION_BODY, "confirm_password": "Secret124"},
        )

        assert response.status_code == 422
        registration.finalize_registration.assert_not_called()

    def test_short_password_returns_422(self, client: TestClient, registration: MagicMock) -> None:
        response = client.post(
            "/v1/auth/complete-registration",
            json={**REGISTRATION_BODY, "password": "abc", "confirm_password": "abc"},
        )
        assert response.status_code == 422

    @pytest.mark.parametrize(
        ("code", "status_code"),
        [
            (ErrorCode.NOT_VERIFIED, 403),
            (ErrorCode.IDENTITY_ALREADY_REGISTERED, 409),
            (ErrorCode.INVALID_PASSWORD, 400),
        ],
    )
    def test_failures(
        self, client: TestClient, registration: MagicMock, code: ErrorCode, status_code: int
    ) -> None:
        registration.finalize_registration.return_value = fail(code)

        response = client.post("/v1/auth/complete-registration", json=REGISTRATION_BODY)

        assert response.status_code == status_code
        assert "set-cookie" not in response.headers


class TestLoginEndpoint:
    """Tests for POST /v1/auth/login and /v1/admin/login."""

    def test_login_success(self, client: TestClient, authentication: MagicMock) -> None:
        authentication.login.return_value = Success(SESSION)

        response = client.post("/v1/auth/login", json={"identity": "a@x.com", "password": "Secret123"})

        assert response.status_code == 200
        assert response.json()["message"] == "Login successful"
        assert "token=signed.session.token" in response.headers["set-cookie"]
        authentication.login.assert_called_once_with("a@x.com", "Secret123")

    def test_login_failure_returns_401(self, client: TestClient, authentication: MagicMock) -> None:
        authentication.login.return_value = fail(ErrorCode.INVALID_CREDENTIALS)

        response = client.post("/v1/auth/login", json={"identity": "a@x.com", "password": "nope"})

        assert response.status_code == 401
        assert response.json() == {
            "detail": "Invalid credentials",
            "code": "invalid_credentials",
        }

    def test_admin_login_restricts_roles(
        self, client: TestClient, authentication: MagicMock
    ) -> None:
        authentication.login.return_value = Success(SESSION)

        client.post("/v1/admin/login", json={"identity": "a@x.com", "password": "Secret123"})

        authentication.login.assert_called_once_with(
            "a@x.com", "Secret123", allowed_roles=ADMIN_ROLES
        )


class TestSessionEndpoints:
    """Tests for logout and /me."""

    def test_logout_with_bearer(self, client: TestClient, authentication: MagicMock) -> None:
        authentication.logout.return_value = Success(LoggedOut(subject_id=USER.id))

        response = client.post("/v1/auth/logout", headers={"Authorization": "Bearer abc"})

        assert response.status_code == 200
        assert response.json() == {"message": "Logged out successfully"}
        assert 'token=""' in response.headers["set-cookie"]
        authentication.logout.assert_called_once_with("abc")

    def test_logout_with_cookie(self, client: TestClient, authentication: MagicMock) -> None:
        authentication.logout.return_value = Success(LoggedOut(subject_id=USER.id))
        client.cookies.set("token", "from-cookie")

        client.post("/v1/auth/logout")

        authentication.logout.assert_called_once_with("from-cookie")

    def test_logout_without_token(self, client: TestClient, authentication: MagicMock) -> None:
        authentication.logout.return_value = fail(ErrorCode.INVALID_TOKEN)

        response = client.post("/v1/auth/logout")

        assert response.status_code == 401
        authentication.logout.assert_called_once_with(None)

    def test_me(self, client: TestClient, authentication: MagicMock) -> None:
        authentication.current_user.return_value = Success(USER)

        response = client.get("/v1/auth/me", headers={"Authorization": "Bearer abc"})

        assert response.status_code == 200
        assert response.json()["email"] == "a@x.com"

    def test_me_inactive_account(self, client: TestClient, authentication: MagicMock) -> None:
        authentication.current_user.return_value = fail(ErrorCode.ACCOUNT_NOT_ACTIVE)

        response = client.get("/v1/auth/me", headers={"Authorization": "Bearer abc"})

        assert response.status_code == 403


class TestChangeStatusEndpoint:
    """Tests for PATCH /v1/admin/users/{user_id}/status."""

    def test_success(self, client: TestClient, accounts: MagicMock) -> None:
        accounts.change_status.return_value = Success(USER)

        response = client.patch(
            f"/v1/admin/users/{USER.id}/status",
            json={"status": "suspended"},
            headers={"Authorization": "Bearer admin"},
        )

        assert response.status_code == 200
        accounts.change_status.assert_called_once_with(
            "admin", USER.id, AccountStatus.SUSPENDED
        )

    def test_unknown_status_returns_422(self, client: TestClient, accounts: MagicMock) -> None:
        response = client.patch(f"/v1/admin/users/{USER.id}/status", json={"status": "deleted"})
        assert response.status_code == 422

    @pytest.mark.parametrize(
        ("code", "status_code"),
        [(ErrorCode.PERMISSION_DENIED, 403), (ErrorCode.USER_NOT_FOUND, 404)],
    )
    def test_failures(
        self, client: TestClient, accounts: MagicMock, code: ErrorCode, status_code: int
    ) -> None:
        accounts.change_status.return_value = fail(code)

        response = client.patch(f"/v1/admin/users/{USER.id}/status", json={"status": "active"})

        assert response.status_code == status_code


class TestInfrastructureErrors:
    """Store outages become an opaque 500."""

    def test_infrastructure_error_returns_500(self, app: FastAPI, registration: MagicMock) -> None:
        registration.request_code.side_effect = InfrastructureError("connection refused")
        client = TestClient(app, raise_server_exceptions=False)

        response = client.post("/v1/auth/send-otp", json={"identity": "a@x.com"})

        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error"}
        assert "connection refused" not in response.text
