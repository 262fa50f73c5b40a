"""Saloon endpoints for saloon owners."""

from fastapi import APIRouter, Depends, Query

from salonbook.models import Account, BookingStatus, SaloonStats
from salonbook.services.booking_lifecycle import BookingLifecycleService
from salonbook_api.dependencies import get_booking_lifecycle_service, get_current_account
from salonbook_api.models.bookings import BookingListResponse

router = APIRouter(tags=["saloons"])


@router.get(
    "/saloons/{saloon_id}/bookings",
    summary="List saloon bookings",
    description="""
List every booking of a saloon, ordered by booking time.

**Only the saloon owner may call this.**
""",
    response_model=BookingListResponse,
    responses={
        403: {"description": "Caller does not own the saloon"},
        404: {"description": "Saloon not found"},
    },
)
async def list_saloon_bookings(
    saloon_id: str,
    status: BookingStatus | None = Query(default=None, description="Filter by status"),
    account: Account = Depends(get_current_account),
    service: BookingLifecycleService = Depends(get_booking_lifecycle_service),
) -> BookingListResponse:
    bookings = service.list_saloon_bookings(saloon_id, account.account_id, status)
    return BookingListResponse(bookings=bookings, total_count=len(bookings))


@router.get(
    "/saloons/{saloon_id}/stats",
    summary="Saloon dashboard figures",
    description="""
Booking counts and revenue for the owner's dashboard.

Revenue is the sum of `total_amount` over completed bookings only;
cancelled bookings never count.

**Only the saloon owner may call this.**
""",
    response_model=SaloonStats,
    responses={
        403: {"description": "Caller does not own the saloon"},
        404: {"description": "Saloon not found"},
    },
)
async def get_saloon_stats(
    saloon_id: str,
    account: Account = Depends(get_current_account),
    service: BookingLifecycleService = Depends(get_booking_lifecycle_service),
) -> SaloonStats:
    return service.saloon_stats(saloon_id, account.account_id)
