"""Pydantic models for saloon booking data entities."""

from .account import Account, VerifiedIdentity
from .booking import Booking, BookingCreate
from .enums import (
    BOOKING_TRANSITIONS,
    TERMINAL_STATUSES,
    BookingStatus,
    ConstraintKind,
    NotificationEvent,
)
from .errors import (
    ERROR_MESSAGES,
    ERROR_RECOVERY,
    AccountResolutionFailed,
    BookingError,
    ErrorCode,
    ErrorResponse,
    Forbidden,
    InvalidTransition,
    NotFound,
)
from .saloon import Saloon, SaloonService, SaloonStats

__all__ = [
    "Account",
    "VerifiedIdentity",
    "Booking",
    "BookingCreate",
    "BOOKING_TRANSITIONS",
    "TERMINAL_STATUSES",
    "BookingStatus",
    "ConstraintKind",
    "NotificationEvent",
    "ERROR_MESSAGES",
    "ERROR_RECOVERY",
    "AccountResolutionFailed",
    "BookingError",
    "ErrorCode",
    "ErrorResponse",
    "Forbidden",
    "InvalidTransition",
    "NotFound",
    "Saloon",
    "SaloonService",
    "SaloonStats",
]
