"""
Pytest configuration and shared fixtures for statesync tests.

This module provides common test fixtures for:
- Settings pointing at an in-memory SQLite database
- Database handle, stores and services
- API test clients
"""
import sys
import time
from pathlib import Path

import pyotp
import pytest
from fastapi.testclient import TestClient

# Add the repository root to the Python path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from statesync.api.main import create_app
from statesync.auth.gateway import AuthGateway
from statesync.auth.mfa import TotpEnroller
from statesync.auth.tokens import TokenService
from statesync.config import Settings
from statesync.database.auth_db import CredentialStore
from statesync.database.connection import Database
from statesync.database.state_db import StateStore

TEST_JWT_SECRET = "test-signing-key-0123456789abcdef0123456789abcdef"


# ============================================
# Configuration Fixtures
# ============================================

@pytest.fixture
def settings():
    """Settings for an isolated, in-memory deployment."""
    return Settings(
        database_url="sqlite://",
        jwt_secret=TEST_JWT_SECRET,
        log_level="WARNING",
        app_env="test",
    )


# ============================================
# Database Fixtures
# ============================================

@pytest.fixture
def database():
    """
    Fresh in-memory database with the schema created.
    Closed after the test completes.
    """
    db = Database("sqlite://")
    db.init_schema()
    yield db
    db.close()


@pytest.fixture
def credential_store(database):
    return CredentialStore(database)


@pytest.fixture
def state_store(database):
    return StateStore(database)


# ============================================
# Service Fixtures
# ============================================

@pytest.fixture
def token_service():
    return TokenService(TEST_JWT_SECRET)


@pytest.fixture
def enroller():
    return TotpEnroller(issuer="statesync-test")


@pytest.fixture
def gateway(credential_store, enroller, token_service):
    return AuthGateway(credential_store, enroller, token_service)


# ============================================
# API Fixtures
# ============================================

@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    """Test client with the application lifespan running."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def lenient_client(app):
    """Test client that returns 500 responses instead of re-raising."""
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def sample_user():
    """Sample signup payload."""
    return {"email": "a@x.com", "password": "pw1", "name": "Al"}


# ============================================
# Helper Fixtures
# ============================================

@pytest.fixture
def wrong_totp_code():
    """Return a function producing a code that is invalid for a secret right now."""
    def _wrong(secret: str) -> str:
        totp = pyotp.TOTP(secret)
        now = time.time()
        valid = {totp.at(now + offset) for offset in (-30, 0, 30)}
        for candidate in ("000000", "111111", "222222", "333333"):
            if candidate not in valid:
                return candidate
        raise AssertionError("could not find an invalid code")
    return _wrong


@pytest.fixture
def auth_header():
    """Return a function building the bearer Authorization header."""
    def _header(token: str) -> dict:
        return {"Authorization": f"Bearer {token}"}
    return _header
