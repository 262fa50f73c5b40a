"""Shared API response models.

Domain models (Booking, Account, ...) live in salonbook.models; this module
only holds HTTP-layer concerns.
"""

from pydantic import BaseModel, ConfigDict, Field

from salonbook.models.errors import ErrorCode, ErrorResponse

__all__ = ["ErrorCode", "ErrorResponse", "SuccessMessage"]


class SuccessMessage(BaseModel):
    """Generic success response for operations without data payload."""

    model_config = ConfigDict(strict=True)

    success: bool = True
    message: str = Field(
        default="Operation completed successfully",
        description="Human-readable success message",
    )
