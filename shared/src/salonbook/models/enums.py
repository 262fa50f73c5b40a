"""Enumeration types for saloon booking data models."""

from enum import Enum


class BookingStatus(str, Enum):
    """Status of a booking."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES: frozenset[BookingStatus] = frozenset(
    {BookingStatus.COMPLETED, BookingStatus.CANCELLED}
)

# Legal status transitions. Every transition is owner-only.
BOOKING_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}


class NotificationEvent(str, Enum):
    """Booking events that trigger customer/saloon notifications."""

    BOOKING_CREATED = "booking_created"
    STATUS_CHANGED = "status_changed"


class ConstraintKind(str, Enum):
    """Kinds of uniqueness records guarding account creation."""

    EXTERNAL_ID = "external_id"
    EMAIL = "email"
    AUTO_ADMIN = "auto_admin"
