"""User directory - creation and lookup of identity records.

Registration is check-then-insert, and the check is not atomic with the
insert. Two registrations racing for one key can both pass is_available();
the unique constraint on users.key_id then rejects the second INSERT, and
that rejection is reported as InvalidBetaKey.
"""

import logging
from uuid import UUID

import psycopg2.errors
from email_validator import EmailNotValidError, validate_email

from api.base import ErrorCodes
from clients.postgres_client import PostgresClient
from auth.exceptions import InvalidBetaKey, ValidationError
from auth.keys import InvitationKeyRegistry
from auth.passwords import CredentialHasher
from auth.types import User, ViewableUser

logger = logging.getLogger(__name__)

# Constraint names from schema.sql
EMAIL_UNIQUE_CONSTRAINT = "users_email_key"
KEY_UNIQUE_CONSTRAINT = "users_key_id_key"

_USER_COLUMNS = "id, email, password, key_id, created_at"


def normalize_email(email: str) -> str:
    """Validate address syntax and return it lower-cased.

    Raises:
        ValidationError: Address is malformed (field code INVALID_EMAIL).
    """
    try:
        result = validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        raise ValidationError(field_codes=[ErrorCodes.INVALID_EMAIL])
    return result.normalized.lower()


def _user_from_row(row: dict) -> User:
    return User(
        id=row["id"],
        email=row["email"],
        password_hash=row["password"],
        key_id=row["key_id"],
        created_at=row["created_at"],
    )


class UserDirectory:
    """Create and look up users."""

    def __init__(
        self,
        postgres: PostgresClient,
        keys: InvitationKeyRegistry,
        hasher: CredentialHasher,
    ):
        self._db = postgres
        self._keys = keys
        self._hasher = hasher

    def find_all(self) -> list[ViewableUser]:
        """All users as {id, email}. Password hashes are never selected."""
        rows = self._db.execute("SELECT id, email FROM users ORDER BY id")
        return [ViewableUser(id=row["id"], email=row["email"]) for row in rows]

    def find_by_id(self, user_id: int) -> ViewableUser | None:
        row = self._db.execute_single(
            "SELECT id, email FROM users WHERE id = %s",
            (user_id,),
        )
        if row is None:
            return None
        return ViewableUser(id=row["id"], email=row["email"])

    def find_by_email(self, email: str) -> User | None:
        """Find user by email (case-insensitive)."""
        # Postgres text cannot hold NUL, so no stored address matches
        if "\x00" in email:
            return None
        row = self._db.execute_single(
            f"SELECT {_USER_COLUMNS} FROM users WHERE email = lower(%s)",
            (email.strip(),),
        )
        if row is None:
            return None
        return _user_from_row(row)

    def create(self, email: str, password: str, key_id: UUID) -> User:
        """Create a user, consuming the invitation key.

        Order: email format, key availability, hash, insert.

        Raises:
            ValidationError: Malformed email (INVALID_EMAIL) or the email
                is already registered (EMAIL_TAKEN).
            InvalidBetaKey: Key missing, consumed, or lost a race.
        """
        email = normalize_email(email)

        if not self._keys.is_available(key_id):
            raise InvalidBetaKey()

        password_hash = self._hasher.hash(password)

        try:
            rows = self._db.execute_returning(
                f"""INSERT INTO users (email, password, key_id)
                    VALUES (%s, %s, %s)
                    RETURNING {_USER_COLUMNS}""",
                (email, password_hash, key_id),
            )
        except psycopg2.errors.UniqueViolation as e:
            constraint = e.diag.constraint_name
            if constraint == EMAIL_UNIQUE_CONSTRAINT:
                raise ValidationError(field_codes=[ErrorCodes.EMAIL_TAKEN]) from e
            # Concurrent registration consumed the key first
            logger.info(f"Key {key_id} lost a redemption race (constraint={constraint})")
            raise InvalidBetaKey() from e
        except psycopg2.errors.ForeignKeyViolation as e:
            raise InvalidBetaKey() from e

        return _user_from_row(rows[0])
