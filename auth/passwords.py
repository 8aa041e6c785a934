"""Password hashing and verification (bcrypt).

bcrypt embeds the salt and cost in its output, so a stored hash is
self-describing and verification needs nothing but the hash itself.
"""

import logging

import bcrypt

from api.base import ErrorCodes
from auth.config import AuthConfig
from auth.exceptions import InternalServerError

logger = logging.getLogger(__name__)

# bcrypt only reads the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


class CredentialHasher:
    """Salted, cost-parameterized one-way password hashing."""

    def __init__(self, config: AuthConfig):
        self._rounds = config.bcrypt_rounds

    @staticmethod
    def _encode(plaintext: str) -> bytes:
        """UTF-8 bytes, truncated to what bcrypt actually reads."""
        return plaintext.encode("utf-8")[:BCRYPT_MAX_BYTES]

    def hash(self, plaintext: str) -> str:
        """Hash a password with a fresh random salt."""
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(self._encode(plaintext), salt).decode("ascii")

    def verify(self, plaintext: str, hash_output: str) -> bool:
        """Check a password against a stored hash (constant-time compare).

        Raises:
            InternalServerError: Stored hash is malformed (INVALID_CREDENTIAL_STATE).
        """
        try:
            return bcrypt.checkpw(self._encode(plaintext), hash_output.encode("ascii"))
        except ValueError as e:
            logger.error(f"Stored password hash is malformed: {type(e).__name__}")
            raise InternalServerError(
                ErrorCodes.INVALID_CREDENTIAL_STATE,
                "Stored credentials are in an invalid state",
            ) from e
