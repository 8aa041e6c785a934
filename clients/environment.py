"""
Process environment access for service secrets and connection settings.

Fails fast on missing configuration: the service cannot sign tokens or reach
its store without these values, so absence is a startup error, never a
per-request one. Values are read once and cached for the process lifetime.
"""

import logging
import os
from typing import Dict

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

USERS_SECRET_VAR = "USERS_SECRET"
DATABASE_URL_VAR = "DATABASE_URL"

_secret_cache: Dict[str, str] = {}
_dotenv_loaded = False


class ConfigurationError(Exception):
    """Required configuration is missing or invalid. Fatal - the process must not start."""


def _ensure_dotenv() -> None:
    global _dotenv_loaded
    if not _dotenv_loaded:
        # Real environment wins over .env
        load_dotenv(override=False)
        _dotenv_loaded = True


def get_required(name: str) -> str:
    """
    Read a required environment variable once and cache it.

    Raises:
        ConfigurationError: Variable is unset or blank.
    """
    if name in _secret_cache:
        return _secret_cache[name]

    _ensure_dotenv()
    value = os.getenv(name, "").strip()
    if not value:
        logger.error(f"Required environment variable {name} is not set")
        raise ConfigurationError(f"{name} environment variable is required")

    _secret_cache[name] = value
    return value


def get_optional(name: str, default: str) -> str:
    """Read an optional environment variable (not cached)."""
    _ensure_dotenv()
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def get_bool(name: str, default: bool) -> bool:
    _ensure_dotenv()
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


# Convenience functions


def get_users_secret() -> str:
    """Get the token signing secret."""
    return get_required(USERS_SECRET_VAR)


def get_database_url() -> str:
    """Get the PostgreSQL connection URL."""
    return get_required(DATABASE_URL_VAR)


def clear_cache() -> None:
    """Forget cached values (tests only)."""
    global _dotenv_loaded
    _secret_cache.clear()
    _dotenv_loaded = False
