"""Shared test fixtures for the users service test suite."""

import os
from pathlib import Path
from uuid import UUID, uuid4

import pytest
from pydantic import SecretStr

from auth.config import AuthConfig
from auth.passwords import CredentialHasher
from auth.tokens import SessionTokenCodec
from auth.types import User
from utils.timezone import now_utc
from utils.user_context import clear_current_claims

SCHEMA_PATH = Path(__file__).parent.parent / "schema.sql"


# =============================================================================
# TEST CONSTANTS
# =============================================================================

TEST_SECRET = "test-signing-secret-that-is-long-enough-for-hs256"

TEST_USER_ID = 1
TEST_USER_EMAIL = "foo@bar.com"


# =============================================================================
# CONTEXT FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def reset_claims_context():
    """Ensure clean caller context before and after each test."""
    clear_current_claims()
    yield
    clear_current_claims()


# =============================================================================
# AUTH CORE FIXTURES
# =============================================================================


@pytest.fixture
def auth_config() -> AuthConfig:
    """Config with the cheapest bcrypt cost so tests stay fast."""
    return AuthConfig(
        token_secret=SecretStr(TEST_SECRET),
        bcrypt_rounds=4,
    )


@pytest.fixture
def hasher(auth_config) -> CredentialHasher:
    return CredentialHasher(auth_config)


@pytest.fixture
def codec(auth_config) -> SessionTokenCodec:
    return SessionTokenCodec(auth_config)


@pytest.fixture
def make_user():
    """Factory for User models (no database involved)."""

    def _make(
        user_id: int = TEST_USER_ID,
        email: str = TEST_USER_EMAIL,
        password_hash: str = "$2b$04$notarealhashnotarealhashnotarealhashnotarealhas",
        key_id: UUID | None = None,
    ) -> User:
        return User(
            id=user_id,
            email=email,
            password_hash=password_hash,
            key_id=key_id or uuid4(),
            created_at=now_utc(),
        )

    return _make


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="session")
def db():
    """Session-scoped PostgresClient against TEST_DATABASE_URL.

    Tests using this fixture are skipped when no test database is configured.
    """
    database_url = os.getenv("TEST_DATABASE_URL")
    if not database_url:
        pytest.skip("TEST_DATABASE_URL not set")

    from clients.postgres_client import PostgresClient

    client = PostgresClient(database_url, min_connections=1, max_connections=10)
    client.execute(SCHEMA_PATH.read_text())
    yield client
    client.close()


@pytest.fixture
def clean_db(db):
    """Empty every table before the test."""
    db.execute("TRUNCATE security_events, users, keys RESTART IDENTITY CASCADE")
    yield db
