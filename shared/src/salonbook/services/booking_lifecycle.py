"""Booking lifecycle service.

Owns the status state machine of a booking:

    pending ──► confirmed ──► completed
       │            │
       └──────┬─────┘
              ▼
          cancelled

``completed`` and ``cancelled`` are terminal. Every transition is
owner-only. Deletion is a separate destructive operation open to the
saloon owner and the booking's own customer, in any status.

Status writes are compare-and-set on the current status, so two
concurrent transitions can never both succeed from the same stale status.
"""

import datetime as dt
import uuid
from typing import TYPE_CHECKING

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from salonbook.models import (
    BOOKING_TRANSITIONS,
    Booking,
    BookingCreate,
    BookingStatus,
    ErrorCode,
    Forbidden,
    InvalidTransition,
    NotFound,
    Saloon,
    SaloonService,
    SaloonStats,
)
from salonbook.models.account import Account
from salonbook.services.notification_service import Recipients
from salonbook.utils.logging import get_logger, log_booking_operation

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService
    from .notification_service import NotificationService

logger = get_logger(__name__)

# Failures tolerated while looking up email recipients after a committed write.
RECIPIENT_LOOKUP_ERRORS = (ClientError, BotoCoreError, ValidationError, KeyError)


def is_legal_transition(current: BookingStatus, requested: BookingStatus) -> bool:
    return requested in BOOKING_TRANSITIONS[current]


class BookingLifecycleService:
    """Service enforcing booking status transitions and deletion rights."""

    def __init__(
        self,
        db: "DynamoDBService",
        notifications: "NotificationService | None" = None,
    ) -> None:
        """Initialize booking lifecycle service.

        Args:
            db: DynamoDB service instance
            notifications: Dispatcher for customer/saloon emails (optional)
        """
        self.db = db
        self.notifications = notifications

    def _generate_booking_id(self) -> str:
        year = dt.datetime.now(dt.UTC).year
        return f"BKG-{year}-{uuid.uuid4().hex[:8].upper()}"

    # Lookups

    def get_booking(self, booking_id: str) -> Booking:
        item = self.db.get_booking(booking_id)
        if not item:
            raise NotFound(ErrorCode.BOOKING_NOT_FOUND, {"booking_id": booking_id})
        return Booking.from_item(item)

    def _get_saloon(self, saloon_id: str) -> Saloon:
        item = self.db.get_saloon(saloon_id)
        if not item:
            raise NotFound(ErrorCode.SALOON_NOT_FOUND, {"saloon_id": saloon_id})
        return Saloon.from_item(item)

    def is_owner(self, booking: Booking, account_id: str) -> bool:
        """Whether the account owns the saloon the booking belongs to."""
        saloon = self.db.get_saloon(booking.saloon_id)
        return bool(saloon) and saloon["owner_account_id"] == account_id

    def can_view(self, booking: Booking, account_id: str) -> bool:
        return booking.account_id == account_id or self.is_owner(booking, account_id)

    # State machine

    def transition(
        self,
        booking_id: str,
        requested_status: BookingStatus | str,
        acting_account_id: str,
    ) -> Booking:
        """Move a booking to a new status.

        Requesting the booking's current status is a no-op: it succeeds,
        writes nothing and sends no notification.

        Args:
            booking_id: Booking to transition
            requested_status: Target status
            acting_account_id: Account requesting the change

        Returns:
            The booking after the transition

        Raises:
            InvalidTransition: Unknown status or illegal (from, to) pair
            NotFound: Booking does not exist
            Forbidden: Actor does not own the booking's saloon
        """
        try:
            target = BookingStatus(requested_status)
        except ValueError:
            raise InvalidTransition(
                {"reason": "unknown_status", "requested_status": str(requested_status)}
            ) from None

        booking = self.get_booking(booking_id)

        if not self.is_owner(booking, acting_account_id):
            log_booking_operation(
                logger,
                "transition",
                booking_id=booking_id,
                account_id=acting_account_id,
                to_status=target.value,
                result="denied",
            )
            raise Forbidden({"booking_id": booking_id, "reason": "not_saloon_owner"})

        current = booking.status
        if target == current:
            log_booking_operation(
                logger,
                "transition",
                booking_id=booking_id,
                from_status=current.value,
                to_status=target.value,
                result="noop",
            )
            return booking

        if not is_legal_transition(current, target):
            raise InvalidTransition(
                {
                    "booking_id": booking_id,
                    "current_status": current.value,
                    "requested_status": target.value,
                }
            )

        now = dt.datetime.now(dt.UTC)
        attrs = self.db.update_booking_status(booking_id, current, target, now.isoformat())

        if attrs is None:
            # Lost a race; report against whatever the booking is now.
            latest = self.db.get_booking(booking_id)
            if not latest:
                raise NotFound(ErrorCode.BOOKING_NOT_FOUND, {"booking_id": booking_id})
            latest_booking = Booking.from_item(latest)
            log_booking_operation(
                logger,
                "transition",
                booking_id=booking_id,
                from_status=latest_booking.status.value,
                to_status=target.value,
                result="conflict",
            )
            if latest_booking.status == target:
                return latest_booking
            raise InvalidTransition(
                {
                    "booking_id": booking_id,
                    "current_status": latest_booking.status.value,
                    "requested_status": target.value,
                }
            )

        updated = Booking.from_item(attrs)
        log_booking_operation(
            logger,
            "transition",
            booking_id=booking_id,
            saloon_id=updated.saloon_id,
            account_id=acting_account_id,
            from_status=current.value,
            to_status=target.value,
        )
        self._notify_status_changed(updated)
        return updated

    def delete(self, booking_id: str, acting_account_id: str) -> None:
        """Permanently remove a booking, whatever its status.

        Raises:
            NotFound: Booking does not exist (or was deleted concurrently)
            Forbidden: Actor is neither the saloon owner nor the customer
        """
        booking = self.get_booking(booking_id)

        if booking.account_id != acting_account_id and not self.is_owner(
            booking, acting_account_id
        ):
            log_booking_operation(
                logger,
                "delete",
                booking_id=booking_id,
                account_id=acting_account_id,
                result="denied",
            )
            raise Forbidden({"booking_id": booking_id, "reason": "not_owner_or_customer"})

        if not self.db.delete_booking(booking_id):
            raise NotFound(ErrorCode.BOOKING_NOT_FOUND, {"booking_id": booking_id})

        log_booking_operation(
            logger,
            "delete",
            booking_id=booking_id,
            saloon_id=booking.saloon_id,
            account_id=acting_account_id,
            from_status=booking.status.value,
        )

    # Creation and listing

    def create_booking(self, data: BookingCreate, account_id: str | None = None) -> Booking:
        """Create a pending booking for a saloon service.

        The total is copied from the service price and never recomputed.
        Slot availability is not checked here.

        Raises:
            NotFound: Unknown saloon, or service not offered by the saloon
        """
        saloon = self._get_saloon(data.saloon_id)
        service_item = self.db.get_saloon_service(data.service_id)
        if not service_item or service_item["saloon_id"] != saloon.saloon_id:
            raise NotFound(
                ErrorCode.SERVICE_NOT_FOUND,
                {"service_id": data.service_id, "saloon_id": data.saloon_id},
            )
        service = SaloonService.from_item(service_item)

        booking_time = data.booking_time
        if booking_time.tzinfo is None:
            booking_time = booking_time.replace(tzinfo=dt.UTC)

        now = dt.datetime.now(dt.UTC)
        booking = Booking(
            booking_id=self._generate_booking_id(),
            service_id=service.service_id,
            saloon_id=saloon.saloon_id,
            account_id=account_id,
            customer_name=data.customer_name,
            customer_email=data.customer_email.lower() if data.customer_email else None,
            customer_phone=data.customer_phone,
            booking_time=booking_time,
            total_amount=service.price,
            notes=data.notes,
            status=BookingStatus.PENDING,
            created_at=now,
            updated_at=now,
        )

        if not self.db.create_booking(booking.to_item()):
            # Booking IDs carry 32 random bits; a collision is a bug, not a user error.
            raise RuntimeError(f"Booking ID collision: {booking.booking_id}")

        log_booking_operation(
            logger,
            "create",
            booking_id=booking.booking_id,
            saloon_id=booking.saloon_id,
            account_id=account_id,
            to_status=booking.status.value,
            total_amount=booking.total_amount,
        )

        if self.notifications:
            recipients = self._safe_recipients(booking, saloon)
            if recipients:
                self.notifications.notify_booking_created(booking, recipients)
        return booking

    def list_saloon_bookings(
        self,
        saloon_id: str,
        acting_account_id: str,
        status: BookingStatus | None = None,
    ) -> list[Booking]:
        """List a saloon's bookings for its owner, ordered by booking time."""
        saloon = self._get_saloon(saloon_id)
        if saloon.owner_account_id != acting_account_id:
            raise Forbidden({"saloon_id": saloon_id, "reason": "not_saloon_owner"})

        bookings = [Booking.from_item(item) for item in self.db.get_bookings_by_saloon(saloon_id)]
        return self._filter_and_sort(bookings, status)

    def saloon_stats(self, saloon_id: str, acting_account_id: str) -> SaloonStats:
        """Booking counts and completed revenue for the saloon's owner.

        Raises:
            NotFound: Unknown saloon
            Forbidden: Actor does not own the saloon
        """
        saloon = self._get_saloon(saloon_id)
        if saloon.owner_account_id != acting_account_id:
            raise Forbidden({"saloon_id": saloon_id, "reason": "not_saloon_owner"})

        bookings = [Booking.from_item(item) for item in self.db.get_bookings_by_saloon(saloon_id)]
        completed = [b for b in bookings if b.status == BookingStatus.COMPLETED]

        return SaloonStats(
            saloon_id=saloon_id,
            total_bookings=len(bookings),
            pending_bookings=sum(1 for b in bookings if b.status == BookingStatus.PENDING),
            completed_bookings=len(completed),
            completed_revenue=sum(b.total_amount for b in completed),
        )

    def list_account_bookings(
        self, account_id: str, status: BookingStatus | None = None
    ) -> list[Booking]:
        """List the bookings an account made, ordered by booking time."""
        bookings = [
            Booking.from_item(item) for item in self.db.get_bookings_by_account(account_id)
        ]
        return self._filter_and_sort(bookings, status)

    @staticmethod
    def _filter_and_sort(
        bookings: list[Booking], status: BookingStatus | None
    ) -> list[Booking]:
        if status:
            bookings = [b for b in bookings if b.status == status]
        return sorted(bookings, key=lambda b: b.booking_time)

    # Notifications

    def _recipients(self, booking: Booking, saloon: Saloon | None) -> Recipients:
        customer_email = booking.customer_email
        if booking.account_id:
            account_item = self.db.get_account(booking.account_id)
            if account_item and not account_item.get("is_service_account"):
                customer_email = Account.from_item(account_item).email

        saloon_email = saloon.email if saloon else None
        if saloon and not saloon_email:
            owner_item = self.db.get_account(saloon.owner_account_id)
            saloon_email = owner_item["email"] if owner_item else None

        return Recipients(customer_email=customer_email, saloon_email=saloon_email)

    def _safe_recipients(self, booking: Booking, saloon: Saloon | None) -> Recipients | None:
        # The booking is already persisted; a failed lookup only costs the email.
        try:
            return self._recipients(booking, saloon)
        except RECIPIENT_LOOKUP_ERRORS as e:
            logger.warning(
                "notification_recipients_unavailable",
                extra={"booking_id": booking.booking_id, "error": str(e)},
            )
            return None

    def _notify_status_changed(self, booking: Booking) -> None:
        if not self.notifications:
            return
        try:
            saloon_item = self.db.get_saloon(booking.saloon_id)
            saloon = Saloon.from_item(saloon_item) if saloon_item else None
        except RECIPIENT_LOOKUP_ERRORS as e:
            logger.warning(
                "notification_recipients_unavailable",
                extra={"booking_id": booking.booking_id, "error": str(e)},
            )
            return
        recipients = self._safe_recipients(booking, saloon)
        if recipients:
            self.notifications.notify_status_changed(booking, recipients)
