"""
Fixtures for full-application tests.

The real FastAPI app is started through its lifespan against each store
backend. Verification codes are read back from the console notifier's
log output, the same way an operator would in development.
"""

import logging
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from shopwise_auth.api.main import app
from shopwise_auth.config.settings import get_settings
from tests.helpers import TEST_SECRET, extract_code


@pytest.fixture(params=["memory", "postgres"])
def client(
    request: pytest.FixtureRequest,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> Generator[TestClient, None, None]:
    """Start the application with the selected storage backend."""
    if request.param == "postgres":
        request.getfixturevalue("clean_postgres")

    monkeypatch.setenv("STORAGE_BACKEND", request.param)
    monkeypatch.setenv("JWT_SECRET", TEST_SECRET)
    monkeypatch.setenv("BCRYPT_COST", "4")
    monkeypatch.setenv("VERIFICATION_SWEEP_SECONDS", "0")
    caplog.set_level(logging.INFO)
    get_settings.cache_clear()

    with TestClient(app) as test_client:
        yield test_client

    get_settings.cache_clear()


@pytest.fixture
def sent_code(caplog: pytest.LogCaptureFixture):
    """Return the most recent verification code logged for an identity key."""

    def _sent_code(identity_key: str) -> str:
        prefix = f"[VERIFICATION] To: {identity_key} "
        messages = [r.getMessage() for r in caplog.records if r.getMessage().startswith(prefix)]
        assert messages, f"No verification code logged for {identity_key}"
        return extract_code(messages[-1])

    return _sent_code
