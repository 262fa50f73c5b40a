"""Standard error codes for the saloon booking service.

Every domain failure is raised as a BookingError carrying one of these
codes. The API layer converts them to ErrorResponse bodies with an HTTP
status chosen from the code.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Standard error codes."""

    # Booking lifecycle error codes (ERR_001-ERR_005)
    FORBIDDEN = "ERR_001"
    INVALID_TRANSITION = "ERR_002"
    BOOKING_NOT_FOUND = "ERR_003"
    SALOON_NOT_FOUND = "ERR_004"
    SERVICE_NOT_FOUND = "ERR_005"

    # Account error codes (ERR_ACCOUNT_001-ERR_ACCOUNT_002)
    ACCOUNT_NOT_FOUND = "ERR_ACCOUNT_001"
    ACCOUNT_RESOLUTION_FAILED = "ERR_ACCOUNT_002"

    # Authentication error codes (ERR_AUTH_001-ERR_AUTH_002)
    AUTH_REQUIRED = "ERR_AUTH_001"
    INVALID_TOKEN = "ERR_AUTH_002"


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.FORBIDDEN: "You are not allowed to perform this action",
    ErrorCode.INVALID_TRANSITION: "The requested status change is not allowed",
    ErrorCode.BOOKING_NOT_FOUND: "Booking not found",
    ErrorCode.SALOON_NOT_FOUND: "Saloon not found",
    ErrorCode.SERVICE_NOT_FOUND: "Service not found for this saloon",
    ErrorCode.ACCOUNT_NOT_FOUND: "Account not found",
    ErrorCode.ACCOUNT_RESOLUTION_FAILED: "Your account could not be set up right now",
    ErrorCode.AUTH_REQUIRED: "Authentication required to perform this action",
    ErrorCode.INVALID_TOKEN: "The authentication token is invalid or expired",
}

# Recovery suggestions for clients
ERROR_RECOVERY: dict[ErrorCode, str] = {
    ErrorCode.FORBIDDEN: "Sign in as the saloon owner or the booking's customer",
    ErrorCode.INVALID_TRANSITION: "Reload the booking to see its current status",
    ErrorCode.BOOKING_NOT_FOUND: "Check the booking ID",
    ErrorCode.SALOON_NOT_FOUND: "Check the saloon ID",
    ErrorCode.SERVICE_NOT_FOUND: "Pick a service offered by this saloon",
    ErrorCode.ACCOUNT_NOT_FOUND: "Sign in again to create your account",
    ErrorCode.ACCOUNT_RESOLUTION_FAILED: "Retry the request in a moment",
    ErrorCode.AUTH_REQUIRED: "Sign in and send the bearer token",
    ErrorCode.INVALID_TOKEN: "Sign in again to obtain a fresh token",
}


class ErrorResponse(BaseModel):
    """Standard error body returned for every domain failure."""

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: ErrorCode
    message: str
    recovery: str
    details: Optional[dict[str, str]] = None

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ) -> "ErrorResponse":
        """Create an ErrorResponse from an error code.

        Args:
            code: The error code
            details: Optional additional context about the error

        Returns:
            An ErrorResponse with the message and recovery hint for the code.
        """
        return cls(
            error_code=code,
            message=ERROR_MESSAGES[code],
            recovery=ERROR_RECOVERY[code],
            details=details,
        )


class BookingError(Exception):
    """Exception raised by booking and account operations.

    Can be caught and converted to an ErrorResponse for API responses.
    """

    def __init__(
        self,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ):
        self.code = code
        self.message = ERROR_MESSAGES[code]
        self.recovery = ERROR_RECOVERY[code]
        self.details = details
        super().__init__(self.message)

    def to_error_response(self) -> ErrorResponse:
        """Convert this exception to an ErrorResponse."""
        return ErrorResponse.from_code(self.code, self.details)


class Forbidden(BookingError):
    """The acting account lacks authority for the requested mutation."""

    def __init__(self, details: Optional[dict[str, str]] = None):
        super().__init__(ErrorCode.FORBIDDEN, details)


class InvalidTransition(BookingError):
    """The requested status change is not legal from the current status."""

    def __init__(self, details: Optional[dict[str, str]] = None):
        super().__init__(ErrorCode.INVALID_TRANSITION, details)


class NotFound(BookingError):
    """A referenced booking, saloon, service or account does not exist."""

    def __init__(
        self,
        code: ErrorCode = ErrorCode.BOOKING_NOT_FOUND,
        details: Optional[dict[str, str]] = None,
    ):
        super().__init__(code, details)


class AccountResolutionFailed(BookingError):
    """Account bootstrap could not complete. Safe to retry on a later request."""

    def __init__(self, details: Optional[dict[str, str]] = None):
        super().__init__(ErrorCode.ACCOUNT_RESOLUTION_FAILED, details)
