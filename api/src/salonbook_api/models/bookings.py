"""API models for booking endpoints.

Extends the shared booking models with HTTP request/response formats.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from salonbook.models import Booking, BookingCreate, BookingStatus


class BookingCreateRequest(BaseModel):
    """Request to create a booking.

    The booking account is derived from the bearer token. Service-key
    callers book on behalf of an anonymous customer and must supply the
    customer's name and email.
    """

    model_config = ConfigDict(
        # strict=False allows ISO strings to become datetimes
        strict=False,
        json_schema_extra={
            "examples": [
                {
                    "saloon_id": "saloon-001",
                    "service_id": "svc-cut",
                    "booking_time": "2025-07-15T10:00:00Z",
                    "notes": "First visit",
                }
            ]
        },
    )

    saloon_id: str = Field(..., min_length=1, description="Saloon to book at")
    service_id: str = Field(..., min_length=1, description="Service offered by the saloon")
    booking_time: datetime = Field(..., description="Appointment start (ISO 8601)")
    notes: str | None = Field(default=None, max_length=1000)
    customer_name: str | None = Field(default=None, max_length=200)
    customer_email: EmailStr | None = Field(default=None)
    customer_phone: str | None = Field(default=None, max_length=50)

    def to_create(self) -> BookingCreate:
        return BookingCreate(
            saloon_id=self.saloon_id,
            service_id=self.service_id,
            booking_time=self.booking_time,
            notes=self.notes,
            customer_name=self.customer_name,
            customer_email=str(self.customer_email) if self.customer_email else None,
            customer_phone=self.customer_phone,
        )


class BookingStatusUpdateRequest(BaseModel):
    """Request a status change.

    The status is a plain string so unknown values reach the state machine
    and are reported as an invalid transition rather than a 422.
    """

    status: str = Field(..., description="Target status", examples=["confirmed"])


class BookingListResponse(BaseModel):
    model_config = ConfigDict(strict=True)

    bookings: list[Booking]
    total_count: int


__all__ = [
    "BookingCreateRequest",
    "BookingListResponse",
    "BookingStatus",
    "BookingStatusUpdateRequest",
]
