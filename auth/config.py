"""Authentication configuration."""

from pydantic import BaseModel, Field, SecretStr

from clients import environment
from clients.environment import ConfigurationError


class AuthConfig(BaseModel):
    """
    Authentication configuration.

    Built once at startup and never mutated: the signing secret has no
    runtime rotation path. Pass the instance to every component that needs
    it instead of reading the environment again.
    """

    model_config = {"frozen": True}

    # Token settings
    token_secret: SecretStr = Field(
        ...,
        description="Symmetric secret used to sign session tokens",
    )
    token_issuer: str = Field(
        default="tallii",
        description="Issuer label written into every token",
        min_length=1,
    )
    token_algorithm: str = Field(
        default="HS256",
        description="JWS algorithm for session tokens",
        pattern=r"^HS(256|384|512)$",
    )
    token_expiry_days: int = Field(
        default=7,
        description="How long a session token stays valid",
        ge=1,
        le=365,
    )

    # Password hashing
    bcrypt_rounds: int = Field(
        default=12,
        description="bcrypt cost factor (log2 of iterations)",
        ge=4,
        le=31,
    )

    # Routes
    users_require_auth: bool = Field(
        default=True,
        description="Whether GET /users requires a bearer token",
    )

    @classmethod
    def from_env(cls) -> "AuthConfig":
        """Build config from the process environment.

        Raises:
            ConfigurationError: USERS_SECRET is missing, or TOKEN_EXPIRY_DAYS
                or BCRYPT_ROUNDS is not an integer in range.
        """
        secret = environment.get_users_secret()
        try:
            return cls(
                token_secret=SecretStr(secret),
                token_expiry_days=int(environment.get_optional("TOKEN_EXPIRY_DAYS", "7")),
                bcrypt_rounds=int(environment.get_optional("BCRYPT_ROUNDS", "12")),
                users_require_auth=environment.get_bool("USERS_REQUIRE_AUTH", True),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid auth settings: {e}") from e
