"""Account endpoints.

- GET /accounts/me: resolve (and on first contact create) the caller's account
- GET /admin/check: whether the caller is the platform admin
"""

from fastapi import APIRouter, Depends

from salonbook.models import Account
from salonbook_api.dependencies import get_current_account
from salonbook_api.models.accounts import AccountResponse, AdminCheckResponse

router = APIRouter(tags=["accounts"])


@router.get(
    "/accounts/me",
    summary="Get my account",
    response_model=AccountResponse,
    responses={
        401: {"description": "Bearer token missing or invalid"},
        503: {"description": "Account could not be set up; retry"},
    },
)
async def get_my_account(
    account: Account = Depends(get_current_account),
) -> AccountResponse:
    return AccountResponse.from_account(account)


@router.get(
    "/admin/check",
    summary="Check admin status",
    description="""
Report whether the caller is a platform admin.

The first account created through sign-in becomes the admin automatically.
""",
    response_model=AdminCheckResponse,
)
async def check_admin(
    account: Account = Depends(get_current_account),
) -> AdminCheckResponse:
    return AdminCheckResponse(
        is_admin=account.is_admin,
        account=AccountResponse.from_account(account),
    )
