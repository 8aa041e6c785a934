"""Error envelope and error codes shared by every endpoint."""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Body of every non-2xx response.

    errors is null unless the failure carries field-level codes.
    """

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    errors: list[str] | None = Field(default=None, description="Field-level error codes")


def error_response(code: str, message: str, errors: list[str] | None = None) -> ErrorResponse:
    """Create an error envelope."""
    return ErrorResponse(code=code, message=message, errors=errors)


class ErrorCodes:
    """Standard error codes for consistent client handling."""

    # Input
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_EMAIL = "INVALID_EMAIL"
    EMAIL_TAKEN = "EMAIL_TAKEN"

    # Identity
    INVALID_BETA_KEY = "INVALID_BETA_KEY"
    INVALID_LOGIN = "INVALID_LOGIN"
    UNAUTHORIZED = "UNAUTHORIZED"

    # Infrastructure
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    DATABASE_POOL_ERROR = "DATABASE_POOL_ERROR"
    INVALID_CREDENTIAL_STATE = "INVALID_CREDENTIAL_STATE"
