"""Booking models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .enums import BookingStatus


class Booking(BaseModel):
    """A scheduled appointment for a service at a saloon."""

    model_config = ConfigDict(strict=True)

    booking_id: str = Field(..., description="Booking ID (e.g. BKG-2025-ABCD1234)")
    service_id: str = Field(..., description="Booked service")
    saloon_id: str = Field(..., description="Saloon the booking belongs to")
    account_id: str | None = Field(
        default=None, description="Booking-taking account, if any"
    )
    customer_name: str | None = Field(default=None, description="Anonymous customer name")
    customer_email: str | None = Field(default=None, description="Anonymous customer email")
    customer_phone: str | None = Field(default=None, description="Anonymous customer phone")
    booking_time: datetime = Field(..., description="Scheduled appointment time")
    total_amount: int = Field(..., ge=0, description="Total in EUR cents, fixed at creation")
    notes: str | None = Field(default=None, description="Free-text notes")
    status: BookingStatus = Field(default=BookingStatus.PENDING)
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")

    def to_item(self) -> dict[str, Any]:
        item = self.model_dump(mode="json", exclude_none=True)
        return item

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> "Booking":
        return cls(
            booking_id=item["booking_id"],
            service_id=item["service_id"],
            saloon_id=item["saloon_id"],
            account_id=item.get("account_id"),
            customer_name=item.get("customer_name"),
            customer_email=item.get("customer_email"),
            customer_phone=item.get("customer_phone"),
            booking_time=datetime.fromisoformat(item["booking_time"]),
            total_amount=int(item["total_amount"]),
            notes=item.get("notes"),
            status=BookingStatus(item["status"]),
            created_at=datetime.fromisoformat(item["created_at"]),
            updated_at=datetime.fromisoformat(item["updated_at"]),
        )


class BookingCreate(BaseModel):
    """Data required to create a booking.

    Slot availability is assumed to have been checked by the caller.
    """

    model_config = ConfigDict(strict=True)

    saloon_id: str
    service_id: str
    booking_time: datetime
    notes: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone: str | None = None
