"""Backend services for the saloon booking platform."""

from .dynamodb import DynamoDBService, get_dynamodb_service
from .notification_service import NotificationService, Recipients
from .account_resolver import AccountResolver
from .booking_lifecycle import BookingLifecycleService
from .identity_verifier import IdentityVerifier
from .service_key_store import ServiceKeyStore, get_service_key_store

__all__ = [
    "DynamoDBService",
    "get_dynamodb_service",
    "NotificationService",
    "Recipients",
    "AccountResolver",
    "BookingLifecycleService",
    "IdentityVerifier",
    "ServiceKeyStore",
    "get_service_key_store",
]
