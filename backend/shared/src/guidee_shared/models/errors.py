"""Error catalogue for order operations.

Every error code carries:
- an internal message (logs only, never returned to clients)
- a user-facing message (returned verbatim in the response envelope)
- an HTTP status code

Services raise OrderError; the API layer turns it into the uniform
``{success, error, message, code}`` envelope.
"""

import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class OrderErrorCode(str, Enum):
    """Machine-readable error codes for order operations."""

    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    INVALID_ORDER_STATUS = "INVALID_ORDER_STATUS"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    PAYMENT_REQUIRED = "PAYMENT_REQUIRED"
    CANCELLATION_NOT_ALLOWED = "CANCELLATION_NOT_ALLOWED"
    REFUND_NOT_AVAILABLE = "REFUND_NOT_AVAILABLE"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    INVALID_REQUEST_DATA = "INVALID_REQUEST_DATA"
    SERVICE_NOT_AVAILABLE = "SERVICE_NOT_AVAILABLE"
    BOOKING_CONFLICT = "BOOKING_CONFLICT"
    PARTICIPANT_LIMIT_EXCEEDED = "PARTICIPANT_LIMIT_EXCEEDED"
    AUTH_REQUIRED = "AUTH_REQUIRED"


UNKNOWN_ERROR_CODE = "UNKNOWN_ERROR"
UNKNOWN_ERROR_USER_MESSAGE = "A system error occurred. Please try again later."

# Internal messages (logs only)
ERROR_MESSAGES: dict[OrderErrorCode, str] = {
    OrderErrorCode.ORDER_NOT_FOUND: "Order not found",
    OrderErrorCode.INVALID_ORDER_STATUS: "Invalid order status",
    OrderErrorCode.INVALID_STATUS_TRANSITION: "Invalid status transition",
    OrderErrorCode.PAYMENT_FAILED: "Payment processing failed",
    OrderErrorCode.PAYMENT_REQUIRED: "Payment is required to proceed",
    OrderErrorCode.CANCELLATION_NOT_ALLOWED: "Order cancellation is not allowed",
    OrderErrorCode.REFUND_NOT_AVAILABLE: "Refund is not available for this order",
    OrderErrorCode.INSUFFICIENT_PERMISSIONS: "Insufficient permissions to access this resource",
    OrderErrorCode.INVALID_REQUEST_DATA: "Invalid or missing request data",
    OrderErrorCode.SERVICE_NOT_AVAILABLE: "Service is not available for booking",
    OrderErrorCode.BOOKING_CONFLICT: "Booking conflict detected",
    OrderErrorCode.PARTICIPANT_LIMIT_EXCEEDED: "Participant limit exceeded",
    OrderErrorCode.AUTH_REQUIRED: "Missing, invalid or expired bearer token",
}

# Messages shown to end users
ERROR_USER_MESSAGES: dict[OrderErrorCode, str] = {
    OrderErrorCode.ORDER_NOT_FOUND: "We couldn't find that order.",
    OrderErrorCode.INVALID_ORDER_STATUS: "The order is not in a valid state.",
    OrderErrorCode.INVALID_STATUS_TRANSITION: "This status change isn't allowed.",
    OrderErrorCode.PAYMENT_FAILED: "Payment failed. Please try again later.",
    OrderErrorCode.PAYMENT_REQUIRED: "Payment is required before continuing.",
    OrderErrorCode.CANCELLATION_NOT_ALLOWED: "This order can no longer be cancelled.",
    OrderErrorCode.REFUND_NOT_AVAILABLE: "This order is not eligible for a refund.",
    OrderErrorCode.INSUFFICIENT_PERMISSIONS: "You don't have permission to do that.",
    OrderErrorCode.INVALID_REQUEST_DATA: "The request is incomplete or malformed.",
    OrderErrorCode.SERVICE_NOT_AVAILABLE: "This service can't be booked right now.",
    OrderErrorCode.BOOKING_CONFLICT: "That time slot is already booked. Please choose another.",
    OrderErrorCode.PARTICIPANT_LIMIT_EXCEEDED: "Participants must be between 1 and 20.",
    OrderErrorCode.AUTH_REQUIRED: "Please sign in to continue.",
}

ERROR_STATUS_CODES: dict[OrderErrorCode, int] = {
    OrderErrorCode.ORDER_NOT_FOUND: 404,
    OrderErrorCode.INVALID_ORDER_STATUS: 400,
    OrderErrorCode.INVALID_STATUS_TRANSITION: 400,
    OrderErrorCode.PAYMENT_FAILED: 400,
    OrderErrorCode.PAYMENT_REQUIRED: 402,
    OrderErrorCode.CANCELLATION_NOT_ALLOWED: 400,
    OrderErrorCode.REFUND_NOT_AVAILABLE: 400,
    OrderErrorCode.INSUFFICIENT_PERMISSIONS: 403,
    OrderErrorCode.INVALID_REQUEST_DATA: 400,
    OrderErrorCode.SERVICE_NOT_AVAILABLE: 400,
    OrderErrorCode.BOOKING_CONFLICT: 409,
    OrderErrorCode.PARTICIPANT_LIMIT_EXCEEDED: 400,
    OrderErrorCode.AUTH_REQUIRED: 401,
}


class ErrorDetails(BaseModel):
    """Normalized description of any error, known or not."""

    model_config = ConfigDict(strict=True)

    code: str
    message: str
    user_message: str
    status_code: int


class ErrorEnvelope(BaseModel):
    """Failure response body.

    Only the user-facing message and the machine code leave the server.
    """

    model_config = ConfigDict(strict=True)

    success: bool = False
    error: str
    code: str
    message: Optional[str] = None


class OrderError(Exception):
    """Exception raised by order operations.

    Args:
        code: The error code
        detail: Optional extra context appended to the internal message
    """

    def __init__(self, code: OrderErrorCode, detail: Optional[str] = None):
        self.code = code
        self.detail = detail
        base = ERROR_MESSAGES[code]
        self.message = f"{base}: {detail}" if detail else base
        self.user_message = ERROR_USER_MESSAGES[code]
        self.status_code = ERROR_STATUS_CODES[code]
        self.timestamp = dt.datetime.now(dt.UTC)
        super().__init__(self.message)

    def to_details(self) -> ErrorDetails:
        return ErrorDetails(
            code=self.code.value,
            message=self.message,
            user_message=self.user_message,
            status_code=self.status_code,
        )

    def to_envelope(self) -> ErrorEnvelope:
        """Convert this exception to the client-facing envelope."""
        return ErrorEnvelope(error=self.user_message, code=self.code.value)


def describe_unknown_error(exc: BaseException) -> ErrorDetails:
    """Normalize any exception into ErrorDetails.

    OrderError keeps its catalogue entry; everything else becomes a generic
    500 whose internal message is the exception text (for logs).

    Args:
        exc: The exception to describe

    Returns:
        ErrorDetails for logging and response building
    """
    if isinstance(exc, OrderError):
        return exc.to_details()

    return ErrorDetails(
        code=UNKNOWN_ERROR_CODE,
        message=str(exc) or type(exc).__name__,
        user_message=UNKNOWN_ERROR_USER_MESSAGE,
        status_code=500,
    )
