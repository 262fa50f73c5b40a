"""API request/response models."""

from .accounts import AccountResponse, AdminCheckResponse
from .bookings import (
    BookingCreateRequest,
    BookingListResponse,
    BookingStatusUpdateRequest,
)
from .common import SuccessMessage

__all__ = [
    "AccountResponse",
    "AdminCheckResponse",
    "BookingCreateRequest",
    "BookingListResponse",
    "BookingStatusUpdateRequest",
    "SuccessMessage",
]
