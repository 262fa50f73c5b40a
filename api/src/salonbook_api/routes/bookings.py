"""Booking endpoints.

Provides REST endpoints for:
- Creating bookings (bearer token, or X-API-Key for the service account)
- Listing the caller's bookings
- Retrieving a booking (saloon owner or the booking's customer)
- Moving a booking through its status lifecycle (saloon owner only)
- Deleting a booking (saloon owner or the booking's customer)
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from starlette.status import HTTP_201_CREATED, HTTP_400_BAD_REQUEST

from salonbook.models import Account, Booking, BookingStatus, Forbidden
from salonbook.services.booking_lifecycle import BookingLifecycleService
from salonbook_api.dependencies import (
    get_booking_actor,
    get_booking_lifecycle_service,
    get_current_account,
)
from salonbook_api.models.bookings import (
    BookingCreateRequest,
    BookingListResponse,
    BookingStatusUpdateRequest,
)
from salonbook_api.models.common import SuccessMessage

router = APIRouter(tags=["bookings"])


@router.post(
    "/bookings",
    summary="Create booking",
    description="""
Create a pending booking for a saloon service.

**Requires a bearer token or the service API key.**

The total is copied from the service price. Service-key callers book on
behalf of an anonymous customer and must include `customer_name` and
`customer_email`.
""",
    response_model=Booking,
    status_code=HTTP_201_CREATED,
    responses={
        400: {"description": "Customer details missing for a service booking"},
        401: {"description": "Authentication required"},
        404: {"description": "Saloon or service not found"},
    },
)
async def create_booking(
    body: BookingCreateRequest,
    actor: Account = Depends(get_booking_actor),
    service: BookingLifecycleService = Depends(get_booking_lifecycle_service),
) -> Booking:
    if actor.is_service_account and not (body.customer_name and body.customer_email):
        raise HTTPException(
            status_code=HTTP_400_BAD_REQUEST,
            detail="customer_name and customer_email are required for service bookings",
        )

    return service.create_booking(body.to_create(), account_id=actor.account_id)


@router.get(
    "/bookings",
    summary="Get my bookings",
    description="""
Get the bookings the caller made, sorted by booking time.

**Requires JWT authentication.**
""",
    response_model=BookingListResponse,
)
async def get_my_bookings(
    status: BookingStatus | None = Query(default=None, description="Filter by status"),
    limit: int = Query(default=50, ge=1, le=200, description="Maximum results to return"),
    account: Account = Depends(get_current_account),
    service: BookingLifecycleService = Depends(get_booking_lifecycle_service),
) -> BookingListResponse:
    bookings = service.list_account_bookings(account.account_id, status)
    return BookingListResponse(bookings=bookings[:limit], total_count=len(bookings))


@router.get(
    "/bookings/{booking_id}",
    summary="Get booking by ID",
    response_model=Booking,
    responses={
        403: {"description": "Caller is neither the saloon owner nor the customer"},
        404: {"description": "Booking not found"},
    },
)
async def get_booking(
    booking_id: str,
    account: Account = Depends(get_current_account),
    service: BookingLifecycleService = Depends(get_booking_lifecycle_service),
) -> Booking:
    booking = service.get_booking(booking_id)
    if not service.can_view(booking, account.account_id):
        raise Forbidden({"booking_id": booking_id, "reason": "not_owner_or_customer"})
    return booking


@router.patch(
    "/bookings/{booking_id}/status",
    summary="Change booking status",
    description="""
Move a booking along its lifecycle.

**Only the saloon owner can change a booking's status.**

Allowed: pending → confirmed | cancelled, confirmed → completed | cancelled.
Completed and cancelled bookings are final. Requesting the current status
is a no-op.
""",
    response_model=Booking,
    responses={
        403: {"description": "Caller does not own the saloon"},
        404: {"description": "Booking not found"},
        409: {"description": "Transition not allowed from the current status"},
    },
)
async def update_booking_status(
    booking_id: str,
    body: BookingStatusUpdateRequest,
    account: Account = Depends(get_current_account),
    service: BookingLifecycleService = Depends(get_booking_lifecycle_service),
) -> Booking:
    return service.transition(booking_id, body.status, account.account_id)


@router.delete(
    "/bookings/{booking_id}",
    summary="Delete booking",
    description="""
Permanently delete a booking, whatever its status.

**Allowed for the saloon owner and the booking's customer.**
""",
    response_model=SuccessMessage,
    responses={
        403: {"description": "Caller is neither the saloon owner nor the customer"},
        404: {"description": "Booking not found"},
    },
)
async def delete_booking(
    booking_id: str,
    account: Account = Depends(get_current_account),
    service: BookingLifecycleService = Depends(get_booking_lifecycle_service),
) -> SuccessMessage:
    service.delete(booking_id, account.account_id)
    return SuccessMessage(message=f"Booking {booking_id} deleted")
