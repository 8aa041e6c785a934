"""Authentication service - orchestrates signup, login and token checks."""

import logging
from contextlib import contextmanager
from uuid import UUID

import psycopg2
import psycopg2.pool

from api.base import ErrorCodes
from auth.exceptions import (
    InternalServerError,
    InvalidBetaKey,
    InvalidLogin,
    Unauthorized,
    ValidationError,
)
from auth.keys import InvitationKeyRegistry
from auth.passwords import CredentialHasher
from auth.security_logger import SecurityEvent, SecurityLogger
from auth.tokens import SessionTokenCodec
from auth.types import TokenClaims, ViewableUser
from auth.users import UserDirectory

logger = logging.getLogger(__name__)


@contextmanager
def _store_errors():
    """Map raw store failures to InternalServerError. Domain errors pass through."""
    try:
        yield
    except psycopg2.pool.PoolError:
        logger.exception("Could not get a connection from the pool")
        raise InternalServerError(
            ErrorCodes.DATABASE_POOL_ERROR,
            "Could not get connection to database",
        )
    except psycopg2.Error:
        logger.exception("Database error")
        raise InternalServerError(ErrorCodes.DATABASE_ERROR, "Database error occurred")


class AuthService:
    """Orchestrates invitation-gated identity flows.

    Handles:
    - Signup (redeem key, create user, issue token)
    - Login (with enumeration protection)
    - Bearer token authentication
    - Key availability checks and user listing

    Holds no per-request state. Every store failure leaves here as one of
    the ApiError subclasses, never as a raw psycopg2 error.
    """

    def __init__(
        self,
        users: UserDirectory,
        keys: InvitationKeyRegistry,
        hasher: CredentialHasher,
        codec: SessionTokenCodec,
        security_logger: SecurityLogger,
    ):
        self._users = users
        self._keys = keys
        self._hasher = hasher
        self._codec = codec
        self._security_logger = security_logger

    def register(
        self,
        email: str,
        password: str,
        key_id: UUID,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> str:
        """Redeem an invitation key and create an account.

        Flow:
        1. Validate email format
        2. Check key availability (pre-filter only)
        3. Hash password
        4. Insert user - unique key_id constraint settles races
        5. Issue token

        Returns:
            Signed session token for the new user.

        Raises:
            ValidationError: Malformed or already registered email.
            InvalidBetaKey: Key missing, consumed, or lost a race.
            InternalServerError: Store failure.
        """
        try:
            with _store_errors():
                user = self._users.create(email, password, key_id)
        except (ValidationError, InvalidBetaKey) as e:
            details = {"reason": e.code, "key_id": str(key_id)}
            if e.errors:
                details["errors"] = e.errors
            with _store_errors():
                self._security_logger.log(
                    SecurityEvent.SIGNUP_FAILED,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    details=details,
                )
            raise

        with _store_errors():
            self._security_logger.log(
                SecurityEvent.USER_CREATED,
                email=user.email,
                user_id=user.id,
                ip_address=ip_address,
                user_agent=user_agent,
            )

        return self._codec.issue(user)

    def login(
        self,
        email: str,
        password: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> str:
        """Verify credentials and issue a token.

        Unknown email and wrong password both raise InvalidLogin, so the
        response never reveals whether an account exists.

        Raises:
            InvalidLogin: Unknown email or wrong password.
            InternalServerError: Store failure or corrupted stored hash.
        """
        with _store_errors():
            user = self._users.find_by_email(email)

        if user is None:
            self._log_login_failure(email, "user_not_found", ip_address, user_agent)
            raise InvalidLogin()

        if not self._hasher.verify(password, user.password_hash):
            self._log_login_failure(user.email, "wrong_password", ip_address, user_agent, user.id)
            raise InvalidLogin()

        with _store_errors():
            self._security_logger.log(
                SecurityEvent.LOGIN_SUCCEEDED,
                email=user.email,
                user_id=user.id,
                ip_address=ip_address,
                user_agent=user_agent,
            )

        return self._codec.issue(user)

    def _log_login_failure(
        self,
        email: str,
        reason: str,
        ip_address: str | None,
        user_agent: str | None,
        user_id: int | None = None,
    ) -> None:
        # reason is for the audit trail only, never the response
        with _store_errors():
            self._security_logger.log(
                SecurityEvent.LOGIN_FAILED,
                email=email.strip().lower(),
                user_id=user_id,
                ip_address=ip_address,
                user_agent=user_agent,
                details={"reason": reason},
            )

    def authenticate(self, token: str) -> TokenClaims:
        """Validate a bearer token.

        Raises:
            Unauthorized: Token invalid or expired.
        """
        return self._codec.validate(token)

    def check_key(self, key_id: UUID) -> None:
        """Succeed silently if the key can still be redeemed.

        Raises:
            InvalidBetaKey: Key missing or already consumed.
        """
        with _store_errors():
            available = self._keys.is_available(key_id)
        if not available:
            raise InvalidBetaKey()

    def list_users(self) -> list[ViewableUser]:
        """All users as {id, email}."""
        with _store_errors():
            return self._users.find_all()

    def get_user(self, user_id: int) -> ViewableUser:
        """Public profile of one user.

        Raises:
            Unauthorized: The user no longer exists.
        """
        with _store_errors():
            user = self._users.find_by_id(user_id)
        if user is None:
            raise Unauthorized()
        return user
