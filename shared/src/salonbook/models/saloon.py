"""Saloon and service offering models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Saloon(BaseModel):
    """A tenant's bookable storefront."""

    model_config = ConfigDict(strict=True)

    saloon_id: str = Field(..., description="Unique saloon ID")
    owner_account_id: str = Field(..., description="Account that owns the saloon")
    name: str = Field(..., description="Saloon name")
    address: str | None = Field(default=None, description="Street address")
    email: str | None = Field(default=None, description="Notification address")

    def to_item(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> "Saloon":
        return cls(
            saloon_id=item["saloon_id"],
            owner_account_id=item["owner_account_id"],
            name=item["name"],
            address=item.get("address"),
            email=item.get("email"),
        )


class SaloonService(BaseModel):
    """A service offered by a saloon, priced in cents."""

    model_config = ConfigDict(strict=True)

    service_id: str = Field(..., description="Unique service ID")
    saloon_id: str = Field(..., description="Saloon offering the service")
    name: str = Field(..., description="Service name")
    price: int = Field(..., ge=0, description="Price in EUR cents")
    duration_minutes: int = Field(default=60, gt=0, description="Appointment length")

    def to_item(self) -> dict[str, Any]:
        return self.model_dump()

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> "SaloonService":
        # DynamoDB returns numbers as Decimal
        return cls(
            service_id=item["service_id"],
            saloon_id=item["saloon_id"],
            name=item["name"],
            price=int(item["price"]),
            duration_minutes=int(item.get("duration_minutes", 60)),
        )


class SaloonStats(BaseModel):
    """Owner dashboard figures for one saloon.

    Revenue only counts completed bookings, using the amount stored on
    each booking at creation time.
    """

    model_config = ConfigDict(strict=True)

    saloon_id: str
    total_bookings: int = Field(..., ge=0, description="Bookings in any status")
    pending_bookings: int = Field(..., ge=0, description="Bookings awaiting confirmation")
    completed_bookings: int = Field(..., ge=0, description="Attended bookings")
    completed_revenue: int = Field(..., ge=0, description="Sum of completed totals in EUR cents")
