"""Typed exceptions for identity failures.

Every failure that reaches a caller is exactly one of these. Each carries the
HTTP status, machine-readable code and user-facing message it renders as.
"""

from api.base import ErrorCodes


class ApiError(Exception):
    """Base class for caller-facing errors."""

    status_code = 500
    code = ErrorCodes.INTERNAL_ERROR
    message = "An internal error occurred"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    @property
    def errors(self) -> list[str] | None:
        """Field-level codes, if any."""
        return None


class ValidationError(ApiError):
    """Malformed input. Carries the codes of every failing field."""

    status_code = 400

    def __init__(
        self,
        code: str = ErrorCodes.VALIDATION_ERROR,
        message: str = "A validation error occurred",
        field_codes: list[str] | None = None,
    ):
        self.code = code
        self.field_codes = list(field_codes or [])
        super().__init__(message)

    @property
    def errors(self) -> list[str]:
        return self.field_codes


class InvalidBetaKey(ApiError):
    """
    Invitation key is missing, already consumed, or lost a consumption race.

    The three cases are deliberately indistinguishable to the caller.
    """

    status_code = 400
    code = ErrorCodes.INVALID_BETA_KEY
    message = "The provided beta key is taken or invalid"


class InvalidLogin(ApiError):
    """
    Unknown email or wrong password.

    Note: Never split this into "no such user" and "bad password" in
    responses - that would allow account enumeration.
    """

    status_code = 400
    code = ErrorCodes.INVALID_LOGIN
    message = "The provided email and password are invalid"


class Unauthorized(ApiError):
    """Bearer token is missing, malformed, badly signed, or expired."""

    status_code = 401
    code = ErrorCodes.UNAUTHORIZED
    message = "Please login to continue"


class InternalServerError(ApiError):
    """Store, pool, or unexpected failure. The cause is logged, never echoed."""

    status_code = 500

    def __init__(self, code: str = ErrorCodes.INTERNAL_ERROR, message: str = "An internal error occurred"):
        self.code = code
        super().__init__(message)
