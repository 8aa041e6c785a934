"""Security middleware for FastAPI - bearer token validation and caller context."""

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from api.errors import api_error_response
from auth.exceptions import Unauthorized
from auth.service import AuthService
from utils.user_context import set_current_claims, clear_current_claims

logger = logging.getLogger(__name__)


def extract_bearer_token(authorization: str | None) -> str | None:
    """Token from an 'Authorization: Bearer <token>' header, else None."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware that validates bearer tokens and sets caller context.

    For protected routes:
    1. Extracts the token from the Authorization header
    2. Validates it via AuthService.authenticate
    3. Sets the claims as the caller context
    4. Clears context after request completes

    Public paths bypass authentication entirely. Rejections happen before
    any route code runs.
    """

    PUBLIC_PATHS = [
        "/signup",
        "/login",
        "/keys",
        "/health",
        "/docs",
        "/openapi.json",
    ]

    def __init__(
        self,
        app,
        auth_service: AuthService,
        extra_public_paths: list[str] | None = None,
    ):
        super().__init__(app)
        self._auth_service = auth_service
        self._public_paths = self.PUBLIC_PATHS + list(extra_public_paths or [])

    def _is_public_path(self, path: str) -> bool:
        """Check if path is a public path or below one."""
        for public_path in self._public_paths:
            if path == public_path or path.startswith(public_path.rstrip("/") + "/"):
                return True
        return False

    async def dispatch(self, request: Request, call_next):
        """Process request through middleware."""
        path = request.url.path

        # CORS preflight never carries credentials
        if request.method == "OPTIONS" or self._is_public_path(path):
            return await call_next(request)

        token = extract_bearer_token(request.headers.get("Authorization"))
        if token is None:
            return api_error_response(Unauthorized())

        try:
            claims = self._auth_service.authenticate(token)
        except Unauthorized as e:
            logger.info(f"Rejected bearer token on {request.method} {path}")
            return api_error_response(e)

        set_current_claims(claims)

        try:
            response = await call_next(request)
            return response
        finally:
            # Always clear context
            clear_current_claims()
