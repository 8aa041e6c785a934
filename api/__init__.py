"""API modules for HTTP interface."""

from api.base import (
    ErrorResponse,
    error_response,
    ErrorCodes,
)
