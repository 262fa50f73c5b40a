"""Structured logging utilities with correlation ID support.

Provides:
- Correlation ID context management for request tracing
- Structured logging formatter for consistent log output
- Helper functions for booking and account operation logging

Usage:
    from salonbook.utils.logging import get_logger, set_correlation_id

    # In middleware/request handler:
    set_correlation_id(request.headers.get("X-Correlation-ID"))

    # In service code:
    logger = get_logger(__name__)
    logger.info("Booking confirmed", extra={"booking_id": "BKG-2025-ABCD1234"})
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Any

# Thread-safe and async-safe
_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set the correlation ID for the current request context.

    Args:
        correlation_id: Optional existing correlation ID. If None, generates new one.

    Returns:
        The correlation ID that was set
    """
    cid = correlation_id or generate_correlation_id()
    _correlation_id.set(cid)
    return cid


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def clear_correlation_id() -> None:
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Logging filter that adds correlation_id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "no-correlation-id"
        return True


class StructuredFormatter(logging.Formatter):
    """Formatter that prefixes every line with the correlation ID."""

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = get_correlation_id() or "no-correlation-id"

        base = super().format(record)
        return f"[{record.correlation_id}] {base}"


def configure_logging(level: int = logging.INFO) -> None:
    """Install the structured formatter on the root logger.

    Safe to call more than once; existing handlers are reused.
    """
    root = logging.getLogger()
    if not root.handlers:
        root.addHandler(logging.StreamHandler())
    for handler in root.handlers:
        handler.setFormatter(
            StructuredFormatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        if not any(isinstance(f, CorrelationIdFilter) for f in handler.filters):
            handler.addFilter(CorrelationIdFilter())
    root.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with correlation ID support.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not any(isinstance(f, CorrelationIdFilter) for f in logger.filters):
        logger.addFilter(CorrelationIdFilter())

    return logger


def _mask(value: str, keep: int = 8) -> str:
    return value[:keep] + "..." if len(value) > keep else value


def log_booking_operation(
    logger: logging.Logger,
    operation: str,
    *,
    booking_id: str | None = None,
    saloon_id: str | None = None,
    account_id: str | None = None,
    from_status: str | None = None,
    to_status: str | None = None,
    result: str = "success",
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log a booking operation with structured context.

    Args:
        logger: Logger instance
        operation: Operation name (e.g., "transition", "delete")
        booking_id: Booking ID if available
        saloon_id: Saloon ID if available
        account_id: Acting account ID if available
        from_status: Status before the operation
        to_status: Requested or resulting status
        result: Outcome (success, noop, denied, conflict, error)
        error: Error message if operation failed
        **extra: Additional context fields
    """
    context: dict[str, Any] = {"operation": operation, "result": result}

    if booking_id:
        context["booking_id"] = booking_id
    if saloon_id:
        context["saloon_id"] = saloon_id
    if account_id:
        context["account_id"] = _mask(account_id)
    if from_status:
        context["from_status"] = from_status
    if to_status:
        context["to_status"] = to_status
    if error:
        context["error"] = error

    context.update(extra)

    msg_parts = [f"Booking operation: {operation}"]
    for key, value in context.items():
        if key != "operation":
            msg_parts.append(f"{key}={value}")

    message = " | ".join(msg_parts)

    if result == "error":
        logger.error(message, extra=context)
    elif result in ("denied", "conflict"):
        logger.warning(message, extra=context)
    else:
        logger.info(message, extra=context)


def log_account_resolution(
    logger: logging.Logger,
    outcome: str,
    *,
    external_id: str,
    account_id: str | None = None,
    is_admin: bool | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log an account resolution step with structured context.

    Args:
        logger: Logger instance
        outcome: What happened (existing, created, adopted, refetched,
            placeholder, admin_lost, failed)
        external_id: Identity provider subject (masked in output)
        account_id: Resolved account ID if any
        is_admin: Admin flag of the resolved account
        error: Error message if resolution failed
        **extra: Additional context fields
    """
    context: dict[str, Any] = {
        "outcome": outcome,
        "external_id": _mask(external_id),
    }
    if account_id:
        context["account_id"] = _mask(account_id)
    if is_admin is not None:
        context["is_admin"] = is_admin
    if error:
        context["error"] = error

    context.update(extra)

    msg_parts = [f"Account resolution: {outcome}"]
    for key, value in context.items():
        if key != "outcome":
            msg_parts.append(f"{key}={value}")

    message = " | ".join(msg_parts)

    if outcome == "failed":
        logger.error(message, extra=context)
    elif outcome in ("admin_lost", "placeholder"):
        logger.warning(message, extra=context)
    else:
        logger.info(message, extra=context)
