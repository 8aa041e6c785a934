"""Stateless session tokens.

Tokens are compact HS256 JWTs. Nothing is stored server-side, so there is
no revocation: expiry is the only way a token stops working.
"""

import logging
from datetime import datetime, timedelta

import jwt

from auth.config import AuthConfig
from auth.exceptions import Unauthorized
from auth.types import TokenClaims, User
from utils.timezone import now_utc, to_epoch_seconds

logger = logging.getLogger(__name__)

REQUIRED_CLAIMS = ["sub", "email", "iss", "iat", "exp"]


class SessionTokenCodec:
    """Issues and validates signed, expiring session tokens."""

    def __init__(self, config: AuthConfig):
        self._secret = config.token_secret.get_secret_value()
        self._algorithm = config.token_algorithm
        self._issuer = config.token_issuer
        self._lifetime = timedelta(days=config.token_expiry_days)

    def claims_for(self, user: User, issued_at: datetime | None = None) -> TokenClaims:
        """Build the claim set for a user without signing it."""
        issued_at = issued_at or now_utc()
        return TokenClaims(
            sub=str(user.id),
            email=user.email,
            iss=self._issuer,
            iat=to_epoch_seconds(issued_at),
            exp=to_epoch_seconds(issued_at + self._lifetime),
        )

    def encode(self, claims: TokenClaims) -> str:
        return jwt.encode(claims.model_dump(), self._secret, algorithm=self._algorithm)

    def issue(self, user: User, issued_at: datetime | None = None) -> str:
        """Mint a signed token for the user, valid from issued_at (default now)."""
        return self.encode(self.claims_for(user, issued_at))

    def validate(self, token: str) -> TokenClaims:
        """Verify signature and expiry, return the decoded claims.

        Raises:
            Unauthorized: Bad signature, malformed token, expired, or a
                required claim is missing. Claim values beyond exp are not
                checked (no issuer or audience match).
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={
                    "verify_signature": True,
                    "verify_exp": True,
                    "require": REQUIRED_CLAIMS,
                },
            )
        except jwt.ExpiredSignatureError:
            logger.debug("Session token expired")
            raise Unauthorized()
        except jwt.InvalidTokenError as e:
            logger.debug(f"Invalid session token: {e}")
            raise Unauthorized()

        return TokenClaims(
            sub=payload["sub"],
            email=payload["email"],
            iss=payload["iss"],
            iat=payload["iat"],
            exp=payload["exp"],
        )
