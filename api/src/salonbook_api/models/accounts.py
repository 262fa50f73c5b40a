"""API models for account endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from salonbook.models import Account


class AccountResponse(BaseModel):
    """Public view of an account. The external id is not exposed."""

    model_config = ConfigDict(strict=True)

    account_id: str
    email: str
    name: str
    is_admin: bool
    created_at: datetime

    @classmethod
    def from_account(cls, account: Account) -> "AccountResponse":
        return cls(
            account_id=account.account_id,
            email=account.email,
            name=account.name,
            is_admin=account.is_admin,
            created_at=account.created_at,
        )


class AdminCheckResponse(BaseModel):
    model_config = ConfigDict(strict=True)

    is_admin: bool = Field(..., description="Whether the caller is a platform admin")
    account: AccountResponse
