"""Structured logging utilities with correlation ID support.

Provides:
- Correlation ID context management for request tracing
- Structured logging formatter for consistent log output
- Helper functions for order and notification logging

Usage:
    from guidee_shared.utils.logging import get_logger, set_correlation_id

    # In middleware/request handler:
    set_correlation_id(request.headers.get("X-Correlation-ID"))

    # In service code:
    logger = get_logger(__name__)
    logger.info("Order created", extra={"order_id": "order-123"})
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Any

# Context variable for correlation ID - thread-safe and async-safe
_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def generate_correlation_id() -> str:
    """Generate a new correlation ID.

    Returns:
        UUID-based correlation ID string
    """
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
    """Get the current correlation ID."""
    return _correlation_id.get()


def clear_correlation_id() -> None:
    """Clear the correlation ID context."""
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Logging filter that adds correlation_id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "no-correlation-id"
        return True


class StructuredFormatter(logging.Formatter):
    """Formatter for structured log output with correlation ID."""

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = get_correlation_id() or "no-correlation-id"

        base = super().format(record)

        # Prefix for easy grep/filtering
        return f"[{record.correlation_id}] {base}"


def configure_logging(level: int | str = logging.INFO) -> None:
    """Install the structured formatter on the root logger.

    Safe to call more than once; an existing structured handler is reused.

    Args:
        level: Root log level
    """
    root = logging.getLogger()
    root.setLevel(level)

    for handler in root.handlers:
        if isinstance(handler.formatter, StructuredFormatter):
            return

    handler = logging.StreamHandler()
    handler.setFormatter(
        StructuredFormatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    handler.addFilter(CorrelationIdFilter())
    root.addHandler(handler)


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


def log_order_operation(
    logger: logging.Logger,
    operation: str,
    *,
    order_id: str | None = None,
    order_number: str | None = None,
    status: str | None = None,
    amount: int | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log an order operation with structured context.

    Args:
        logger: Logger instance
        operation: Operation name (e.g., "create_order", "cancel_order")
        order_id: Order ID if available
        order_number: Human-readable order number if available
        status: Order status after the operation
        amount: Amount in TWD if relevant
        error: Error message if operation failed
        **extra: Additional context fields
    """
    context: dict[str, Any] = {"operation": operation}

    if order_id:
        context["order_id"] = order_id
    if order_number:
        context["order_number"] = order_number
    if status:
        context["status"] = status
    if amount is not None:
        context["amount"] = amount
    if error:
        context["error"] = error

    context.update(extra)

    msg_parts = [f"Order operation: {operation}"]
    for key, value in context.items():
        if key != "operation":
            msg_parts.append(f"{key}={value}")

    message = " | ".join(msg_parts)

    if error:
        logger.error(message, extra=context)
    else:
        logger.info(message, extra=context)


def mask_recipient(recipient: str) -> str:
    """Mask an email address or phone number for logging.

    Opaque ids (e.g. guide ids used for push) are returned unchanged.

    Examples:
        wang@example.com -> w***@example.com
        +886912345678 -> ***5678
    """
    if "@" in recipient:
        local, _, domain = recipient.partition("@")
        return f"{local[:1]}***@{domain}"
    digits = recipient.lstrip("+").replace(" ", "").replace("-", "")
    if digits.isdigit():
        return f"***{digits[-4:]}"
    return recipient


def log_notification(
    logger: logging.Logger,
    channel: str,
    order_id: str,
    *,
    to: str | None = None,
    subject: str | None = None,
    result: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log a notification delivery with structured context.

    Args:
        logger: Logger instance
        channel: Delivery channel (email, sms, push)
        order_id: Order the notification is about
        to: Recipient address or id (masked in the log line)
        subject: Notification subject
        result: Delivery result (sent, failed)
        error: Error message if delivery failed
        **extra: Additional context fields
    """
    context: dict[str, Any] = {
        "channel": channel,
        "order_id": order_id,
    }

    if to:
        context["recipient"] = mask_recipient(to)
    if result:
        context["result"] = result
    if error:
        context["error"] = error

    context.update(extra)

    msg_parts = [f"Notification: {channel} ({order_id})"]
    if to:
        msg_parts.append(f"to={context['recipient']}")
    if subject:
        msg_parts.append(f"subject={subject}")
    if result:
        msg_parts.append(f"result={result}")
    if error:
        msg_parts.append(f"error={error}")

    message = " | ".join(msg_parts)

    if result == "failed":
        logger.error(message, extra=context)
    else:
        logger.info(message, extra=context)
