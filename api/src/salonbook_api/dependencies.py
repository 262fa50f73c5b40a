"""FastAPI dependency injection providers for shared services.

Service instances are created lazily and cached with @lru_cache so every
request reuses the same DynamoDB connection and notification pool.

Service Dependency Graph:
    DynamoDBService (singleton via get_dynamodb_service)
        ├── AccountResolver
        └── BookingLifecycleService
                └── NotificationService
    IdentityVerifier (JWKS cache)

Caller identity:
    get_current_account  - bearer token -> IdentityVerifier -> resolve_account
    get_booking_actor    - bearer token, or X-API-Key for the service account

Testing:
    Use reset_services() to clear cached instances between tests, or
    app.dependency_overrides to swap providers.
"""

import hmac
from functools import lru_cache

from fastapi import Depends, Header

from salonbook.config import get_settings
from salonbook.models import Account, BookingError, ErrorCode
from salonbook.services.account_resolver import AccountResolver
from salonbook.services.booking_lifecycle import BookingLifecycleService
from salonbook.services.dynamodb import get_dynamodb_service
from salonbook.services.identity_verifier import IdentityVerifier
from salonbook.services.notification_service import NotificationService


@lru_cache
def get_notification_service() -> NotificationService:
    return NotificationService()


@lru_cache
def get_booking_lifecycle_service() -> BookingLifecycleService:
    """Get cached BookingLifecycleService instance."""
    return BookingLifecycleService(
        db=get_dynamodb_service(),
        notifications=get_notification_service(),
    )


@lru_cache
def get_account_resolver() -> AccountResolver:
    """Get cached AccountResolver instance."""
    return AccountResolver(db=get_dynamodb_service())


@lru_cache
def get_identity_verifier() -> IdentityVerifier:
    return IdentityVerifier()


def reset_services() -> None:
    """Clear all cached service instances.

    Also resets the underlying DynamoDB singleton and settings.
    """
    from salonbook.config import reset_settings
    from salonbook.services.dynamodb import reset_dynamodb_service

    if get_notification_service.cache_info().currsize:
        get_notification_service().shutdown(wait=False)

    get_notification_service.cache_clear()
    get_booking_lifecycle_service.cache_clear()
    get_account_resolver.cache_clear()
    get_identity_verifier.cache_clear()

    reset_dynamodb_service()
    reset_settings()


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_account(
    authorization: str | None = Header(default=None),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
    resolver: AccountResolver = Depends(get_account_resolver),
) -> Account:
    """Resolve the caller's Account from a verified bearer token.

    First contact creates the account (and may bootstrap the admin).
    """
    token = _bearer_token(authorization)
    if not token:
        raise BookingError(ErrorCode.AUTH_REQUIRED)

    identity = verifier.verify(token)
    return resolver.resolve_account(
        identity.external_id,
        email_hint=identity.email,
        name_hint=identity.name,
    )


def is_valid_service_key(api_key: str | None) -> bool:
    if not api_key:
        return False
    expected = get_settings().resolve_service_api_key()
    if not expected:
        return False
    return hmac.compare_digest(api_key.encode(), expected.encode())


def get_booking_actor(
    authorization: str | None = Header(default=None),
    x_api_key: str | None = Header(default=None),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
    resolver: AccountResolver = Depends(get_account_resolver),
) -> Account:
    """Account creating a booking: a signed-in user or the service account.

    A valid ``X-API-Key`` takes precedence and maps to the synthetic
    service account, which is provisioned on first use.
    """
    if x_api_key is not None:
        if not is_valid_service_key(x_api_key):
            raise BookingError(ErrorCode.INVALID_TOKEN, {"reason": "invalid_api_key"})
        return resolver.ensure_service_account()

    return get_current_account(authorization, verifier, resolver)
