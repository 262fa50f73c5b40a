"""Tests for correlation-aware structured logging helpers."""

import logging

import pytest

from salonbook.utils.logging import (
    CorrelationIdFilter,
    clear_correlation_id,
    get_correlation_id,
    get_logger,
    log_account_resolution,
    log_booking_operation,
    set_correlation_id,
)


@pytest.fixture(autouse=True)
def clean_correlation_id():
    clear_correlation_id()
    yield
    clear_correlation_id()


def test_correlation_id_is_generated_and_attached() -> None:
    cid = set_correlation_id()
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)

    CorrelationIdFilter().filter(record)

    assert get_correlation_id() == cid
    assert record.correlation_id == cid


def test_booking_operation_levels(caplog: pytest.LogCaptureFixture) -> None:
    logger = get_logger("salonbook.test")

    with caplog.at_level(logging.INFO, logger="salonbook.test"):
        log_booking_operation(logger, "transition", booking_id="BKG-1", to_status="confirmed")
        log_booking_operation(logger, "transition", booking_id="BKG-1", result="denied")

    assert [r.levelno for r in caplog.records] == [logging.INFO, logging.WARNING]
    assert "booking_id=BKG-1" in caplog.records[0].getMessage()


def test_account_resolution_masks_identifiers(caplog: pytest.LogCaptureFixture) -> None:
    logger = get_logger("salonbook.test")

    with caplog.at_level(logging.INFO, logger="salonbook.test"):
        log_account_resolution(
            logger, "admin_lost", external_id="google-oauth2|1234567890", account_id="acc-1"
        )

    record = caplog.records[0]
    assert record.levelno == logging.WARNING
    assert "1234567890" not in record.getMessage()
