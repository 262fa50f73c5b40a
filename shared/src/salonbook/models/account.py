"""Account model for identity-provider-verified people."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Account(BaseModel):
    """An internal user record linked to a verified external identity."""

    model_config = ConfigDict(strict=True)

    account_id: str = Field(..., description="Unique account ID (UUID)")
    external_id: str | None = Field(
        default=None,
        description="Identity provider subject; unique and immutable once set",
    )
    email: str = Field(..., description="Unique email address (lower-cased)")
    name: str = Field(..., description="Display name")
    is_admin: bool = Field(default=False, description="Platform admin flag")
    is_service_account: bool = Field(
        default=False,
        description="Synthetic machine-to-machine account, excluded from admin counting",
    )
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")

    def to_item(self) -> dict[str, Any]:
        """Serialize for DynamoDB. Unset external_id is omitted so GSIs stay sparse."""
        item: dict[str, Any] = {
            "account_id": self.account_id,
            "email": self.email,
            "name": self.name,
            "is_admin": self.is_admin,
            "is_service_account": self.is_service_account,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
        if self.external_id:
            item["external_id"] = self.external_id
        return item

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> "Account":
        return cls(
            account_id=item["account_id"],
            external_id=item.get("external_id"),
            email=item["email"],
            name=item.get("name") or item["email"],
            is_admin=bool(item.get("is_admin", False)),
            is_service_account=bool(item.get("is_service_account", False)),
            created_at=datetime.fromisoformat(item["created_at"]),
            updated_at=datetime.fromisoformat(item["updated_at"]),
        )


class VerifiedIdentity(BaseModel):
    """Identity established by a verified identity-provider token.

    Only the subject is an authorization fact; email and name are
    best-effort profile hints.
    """

    model_config = ConfigDict(strict=True)

    external_id: str = Field(..., min_length=1, description="Verified subject claim")
    email: str | None = Field(default=None, description="Email hint from the provider")
    name: str | None = Field(default=None, description="Display name hint")
