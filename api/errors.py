"""Exception handlers that render every failure as the error envelope."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from auth.exceptions import ApiError, InternalServerError, Unauthorized, ValidationError

logger = logging.getLogger(__name__)


def api_error_response(exc: ApiError) -> JSONResponse:
    """{code, message, errors} with the error's own status code.

    401s carry a Bearer challenge header.
    """
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    return JSONResponse(
        status_code=exc.status_code,
        headers=headers,
        content=error_response(exc.code, exc.message, exc.errors).model_dump(mode="json"),
    )


def field_codes(exc: RequestValidationError) -> list[str]:
    """Turn pydantic errors into stable codes, e.g. KEY_REQUIRED, INVALID_KEY."""
    codes = []
    for err in exc.errors():
        loc = [part for part in err.get("loc", ()) if part != "body"]
        if err.get("type") == "json_invalid" or not loc or not isinstance(loc[-1], str):
            code = "INVALID_JSON"
        elif err.get("type") == "missing":
            code = f"{loc[-1].upper()}_REQUIRED"
        else:
            code = f"INVALID_{loc[-1].upper()}"
        if code not in codes:
            codes.append(code)
    return codes


def register_error_handlers(app: FastAPI) -> None:
    """Install handlers for ApiError, request validation and anything else."""

    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError):
        if exc.status_code >= 500:
            logger.error(f"{exc.code} on {request.method} {request.url.path}")
        return api_error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return api_error_response(
            ValidationError(ErrorCodes.VALIDATION_ERROR, field_codes=field_codes(exc))
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        # Details stay in the log, never in the body
        logger.exception(f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}")
        return api_error_response(InternalServerError())
