"""Service entrypoint: configuration, logging, wiring and the HTTP server."""

import logging
import sys

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware
from auth.api import create_auth_router
from auth.config import AuthConfig
from auth.keys import InvitationKeyRegistry
from auth.passwords import CredentialHasher
from auth.security_logger import SecurityLogger
from auth.security_middleware import AuthMiddleware
from auth.service import AuthService
from auth.tokens import SessionTokenCodec
from auth.users import UserDirectory
from clients import environment
from clients.environment import ConfigurationError
from clients.postgres_client import PostgresClient

logger = logging.getLogger(__name__)


class AppConfig(BaseModel):
    """Process-level settings that are not part of the auth core."""

    model_config = {"frozen": True}

    database_url: str
    db_pool_min: int = Field(default=2, ge=1)
    db_pool_max: int = Field(default=20, ge=1)
    cors_allowed_origins: list[str] = Field(default_factory=list)
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=1, le=65535)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Build config from the process environment.

        Raises:
            ConfigurationError: DATABASE_URL is missing, or a numeric
                setting is not an integer or out of range.
        """
        origins = environment.get_optional("CORS_ALLOWED_ORIGINS", "")
        try:
            return cls(
                database_url=environment.get_database_url(),
                db_pool_min=int(environment.get_optional("DB_POOL_MIN", "2")),
                db_pool_max=int(environment.get_optional("DB_POOL_MAX", "20")),
                cors_allowed_origins=[o.strip() for o in origins.split(",") if o.strip()],
                log_level=environment.get_optional("LOG_LEVEL", "INFO").upper(),
                host=environment.get_optional("API_HOST", "0.0.0.0"),
                port=int(environment.get_optional("API_PORT", "8080")),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid server settings: {e}") from e


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        stream=sys.stdout,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def build_auth_service(config: AuthConfig, postgres: PostgresClient) -> AuthService:
    """Wire the auth core around one shared pool and one immutable config."""
    hasher = CredentialHasher(config)
    keys = InvitationKeyRegistry(postgres)
    return AuthService(
        users=UserDirectory(postgres, keys, hasher),
        keys=keys,
        hasher=hasher,
        codec=SessionTokenCodec(config),
        security_logger=SecurityLogger(postgres),
    )


def create_app(
    auth_service: AuthService,
    auth_config: AuthConfig,
    cors_allowed_origins: list[str] | None = None,
) -> FastAPI:
    """Build the FastAPI app around an already wired AuthService."""
    app = FastAPI(title="Users Service")

    # Added innermost first: auth, then CORS, then request ids outermost
    public_paths = [] if auth_config.users_require_auth else ["/users"]
    app.add_middleware(
        AuthMiddleware,
        auth_service=auth_service,
        extra_public_paths=public_paths,
    )
    if cors_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_allowed_origins,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Authorization", "Content-Type"],
        )
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    app.include_router(create_auth_router(auth_service))
    return app


def main() -> None:
    """Read configuration once, then serve. Missing secrets abort startup."""
    configure_logging(environment.get_optional("LOG_LEVEL", "INFO").upper())

    try:
        auth_config = AuthConfig.from_env()
        app_config = AppConfig.from_env()
    except ConfigurationError as e:
        logger.critical(f"Refusing to start: {e}")
        raise SystemExit(1)

    postgres = PostgresClient(
        app_config.database_url,
        min_connections=app_config.db_pool_min,
        max_connections=app_config.db_pool_max,
    )
    app = create_app(
        build_auth_service(auth_config, postgres),
        auth_config,
        cors_allowed_origins=app_config.cors_allowed_origins,
    )

    try:
        uvicorn.run(app, host=app_config.host, port=app_config.port, log_level=app_config.log_level.lower())
    finally:
        PostgresClient.close_all_pools()


if __name__ == "__main__":
    main()
