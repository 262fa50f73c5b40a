"""FastAPI exception handlers for converting BookingError to HTTP responses.

Domain errors keep one JSON body shape (ErrorResponse) and get an HTTP
status chosen from their ErrorCode:

- 401 Unauthorized: Missing or invalid bearer token / API key
- 403 Forbidden: Actor lacks authority over the booking or saloon
- 404 Not Found: Booking, saloon, service or account does not exist
- 409 Conflict: Illegal or lost-race status transition
- 503 Service Unavailable: Account bootstrap failed, retry later

Usage:
    from salonbook_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_503_SERVICE_UNAVAILABLE,
)

from salonbook.models.errors import BookingError, ErrorCode
from salonbook.utils.logging import get_logger

logger = get_logger(__name__)

ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    # Authentication errors -> 401 Unauthorized
    ErrorCode.AUTH_REQUIRED: HTTP_401_UNAUTHORIZED,
    ErrorCode.INVALID_TOKEN: HTTP_401_UNAUTHORIZED,
    # Authorization errors -> 403 Forbidden
    ErrorCode.FORBIDDEN: HTTP_403_FORBIDDEN,
    # Not found errors -> 404 Not Found
    ErrorCode.BOOKING_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.SALOON_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.SERVICE_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.ACCOUNT_NOT_FOUND: HTTP_404_NOT_FOUND,
    # State machine violations -> 409 Conflict
    ErrorCode.INVALID_TRANSITION: HTTP_409_CONFLICT,
    # Transient bootstrap failure -> 503
    ErrorCode.ACCOUNT_RESOLUTION_FAILED: HTTP_503_SERVICE_UNAVAILABLE,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode, defaulting to 400."""
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """Convert a BookingError into an ErrorResponse JSON body."""
    status_code = get_http_status_for_error(exc.code)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == HTTP_401_UNAUTHORIZED else None

    return JSONResponse(
        status_code=status_code,
        content=exc.to_error_response().model_dump(mode="json"),
        headers=headers,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback for uncaught exceptions; never leaks internal details."""
    logger.exception("Unhandled exception: %s", exc)

    error_response = {
        "success": False,
        "error_code": "ERR_INTERNAL",
        "message": "An unexpected error occurred",
        "recovery": "Please try again later or contact support",
        "details": None,
    }

    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(BookingError, booking_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
