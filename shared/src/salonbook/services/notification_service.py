"""Fire-and-forget booking notifications sent through Amazon SES.

Dispatch never blocks the caller and never raises: emails are handed to a
small thread pool and any delivery failure is logged in the worker.
Notifications are at-most-once.
"""

from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from salonbook.config import get_settings
from salonbook.models import Booking, NotificationEvent
from salonbook.utils.logging import get_logger

logger = get_logger(__name__)

_STATUS_SUBJECTS = {
    "confirmed": "Your booking is confirmed",
    "completed": "Thanks for your visit",
    "cancelled": "Your booking was cancelled",
    "pending": "Your booking is pending",
}


@dataclass(frozen=True)
class Recipients:
    """Addresses to notify about one booking. Missing addresses are skipped."""

    customer_email: str | None = None
    saloon_email: str | None = None

    def addresses(self) -> list[str]:
        seen: list[str] = []
        for address in (self.customer_email, self.saloon_email):
            if address and address not in seen:
                seen.append(address)
        return seen


class NotificationService:
    """Dispatches booking emails in the background."""

    def __init__(
        self,
        sender: str | None = None,
        enabled: bool | None = None,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        settings = get_settings()
        self.sender = sender or settings.notification_sender
        self.enabled = settings.notifications_enabled if enabled is None else enabled
        self._region = settings.aws_region
        self._executor = executor or ThreadPoolExecutor(
            max_workers=4, thread_name_prefix="notify"
        )
        self._ses = None

    def _client(self):
        if self._ses is None:
            self._ses = boto3.client("ses", region_name=self._region)
        return self._ses

    def notify_status_changed(
        self, booking: Booking, recipients: Recipients
    ) -> Future | None:
        """Send a "booking status changed" event to customer and saloon.

        Returns:
            The background Future, or None when nothing was dispatched
        """
        subject = _STATUS_SUBJECTS.get(booking.status.value, "Your booking was updated")
        body = (
            f"Booking {booking.booking_id} at "
            f"{booking.booking_time.isoformat()} is now {booking.status.value}."
        )
        return self._dispatch(NotificationEvent.STATUS_CHANGED, booking, recipients, subject, body)

    def notify_booking_created(
        self, booking: Booking, recipients: Recipients
    ) -> Future | None:
        """Send a "booking received" event to customer and saloon."""
        subject = "We received your booking"
        body = (
            f"Booking {booking.booking_id} for "
            f"{booking.booking_time.isoformat()} was received. "
            f"Total: EUR {booking.total_amount / 100:.2f}."
        )
        return self._dispatch(NotificationEvent.BOOKING_CREATED, booking, recipients, subject, body)

    def _dispatch(
        self,
        event: NotificationEvent,
        booking: Booking,
        recipients: Recipients,
        subject: str,
        body: str,
    ) -> Future | None:
        addresses = recipients.addresses()
        if not self.enabled or not addresses:
            logger.debug(
                "notification_skipped",
                extra={"event": event.value, "booking_id": booking.booking_id},
            )
            return None

        try:
            return self._executor.submit(
                self._send, event, booking.booking_id, addresses, subject, body
            )
        except RuntimeError:
            # Executor already shut down
            logger.warning(
                "notification_dropped",
                extra={"event": event.value, "booking_id": booking.booking_id},
            )
            return None

    def _send(
        self,
        event: NotificationEvent,
        booking_id: str,
        addresses: list[str],
        subject: str,
        body: str,
    ) -> bool:
        try:
            self._client().send_email(
                Source=self.sender,
                Destination={"ToAddresses": addresses},
                Message={
                    "Subject": {"Data": subject},
                    "Body": {"Text": {"Data": body}},
                },
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "notification_failed",
                extra={"event": event.value, "booking_id": booking_id, "error": str(e)},
            )
            return False

        logger.info(
            "notification_sent",
            extra={
                "event": event.value,
                "booking_id": booking_id,
                "recipient_count": len(addresses),
            },
        )
        return True

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
