"""Tests for NotificationService (SES dispatch in the background)."""

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Generator
from unittest.mock import MagicMock

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

from salonbook.models import Booking, BookingStatus
from salonbook.services.notification_service import NotificationService, Recipients

SENDER = "bookings@salonbook.test"


@pytest.fixture
def executor() -> Generator[ThreadPoolExecutor, None, None]:
    pool = ThreadPoolExecutor(max_workers=1)
    yield pool
    pool.shutdown(wait=True)


@pytest.fixture
def booking(booking_item_factory: Callable[..., dict[str, Any]]) -> Booking:
    return Booking.from_item(booking_item_factory("confirmed"))


@pytest.fixture
def recipients() -> Recipients:
    return Recipients(customer_email="ana@example.com", saloon_email="studio@example.com")


class TestRecipients:
    def test_missing_and_duplicate_addresses_are_skipped(self) -> None:
        recipients = Recipients(customer_email="same@example.com", saloon_email="same@example.com")
        assert recipients.addresses() == ["same@example.com"]
        assert Recipients().addresses() == []


class TestDispatch:
    def test_status_change_is_sent(
        self, executor: ThreadPoolExecutor, booking: Booking, recipients: Recipients
    ) -> None:
        service = NotificationService(sender=SENDER, enabled=True, executor=executor)
        service._ses = MagicMock()

        future = service.notify_status_changed(booking, recipients)

        assert future is not None
        assert future.result(timeout=5) is True
        kwargs = service._ses.send_email.call_args.kwargs
        assert kwargs["Source"] == SENDER
        assert kwargs["Destination"]["ToAddresses"] == ["ana@example.com", "studio@example.com"]
        assert "confirmed" in kwargs["Message"]["Subject"]["Data"]

    def test_booking_created_mentions_total(
        self, executor: ThreadPoolExecutor, booking: Booking, recipients: Recipients
    ) -> None:
        service = NotificationService(sender=SENDER, enabled=True, executor=executor)
        service._ses = MagicMock()

        service.notify_booking_created(booking, recipients).result(timeout=5)

        body = service._ses.send_email.call_args.kwargs["Message"]["Body"]["Text"]["Data"]
        assert "EUR 35.00" in body

    def test_delivery_failure_is_logged_not_raised(
        self,
        executor: ThreadPoolExecutor,
        booking: Booking,
        recipients: Recipients,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        service = NotificationService(sender=SENDER, enabled=True, executor=executor)
        service._ses = MagicMock()
        service._ses.send_email.side_effect = ClientError(
            {"Error": {"Code": "MessageRejected", "Message": "not verified"}}, "SendEmail"
        )

        with caplog.at_level("ERROR"):
            result = service.notify_status_changed(booking, recipients).result(timeout=5)

        assert result is False
        assert "notification_failed" in caplog.text

    def test_disabled_service_sends_nothing(
        self, executor: ThreadPoolExecutor, booking: Booking, recipients: Recipients
    ) -> None:
        service = NotificationService(sender=SENDER, enabled=False, executor=executor)
        service._ses = MagicMock()

        assert service.notify_status_changed(booking, recipients) is None
        service._ses.send_email.assert_not_called()

    def test_no_addresses_sends_nothing(
        self, executor: ThreadPoolExecutor, booking: Booking
    ) -> None:
        service = NotificationService(sender=SENDER, enabled=True, executor=executor)
        assert service.notify_status_changed(booking, Recipients()) is None

    def test_dispatch_after_shutdown_is_dropped(
        self, booking: Booking, recipients: Recipients
    ) -> None:
        service = NotificationService(sender=SENDER, enabled=True)
        service.shutdown()

        assert service.notify_status_changed(booking, recipients) is None


@mock_aws
def test_sends_through_ses(booking_item_factory: Callable[..., dict[str, Any]]) -> None:
    ses = boto3.client("ses", region_name="eu-west-1")
    ses.verify_email_identity(EmailAddress=SENDER)

    with ThreadPoolExecutor(max_workers=1) as pool:
        service = NotificationService(sender=SENDER, enabled=True, executor=pool)
        booking = Booking.from_item(booking_item_factory(BookingStatus.CANCELLED.value))
        sent = service.notify_status_changed(
            booking, Recipients(customer_email="ana@example.com")
        ).result(timeout=5)

    assert sent is True
    assert ses.get_send_quota()["SentLast24Hours"] == 1
