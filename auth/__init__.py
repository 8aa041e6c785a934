"""Invitation-gated registration, login and session tokens.

Only leaf modules are re-exported here; import the service, router and
middleware from their own modules (they depend on api/).
"""

from auth.exceptions import (
    ApiError,
    ValidationError,
    InvalidBetaKey,
    InvalidLogin,
    Unauthorized,
    InternalServerError,
)
from auth.types import (
    InvitationKey,
    User,
    ViewableUser,
    TokenClaims,
    SignupRequest,
    LoginRequest,
    CheckKeyRequest,
    TokenResponse,
)
from auth.config import AuthConfig
