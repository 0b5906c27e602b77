"""Pydantic models for Guidee order data entities."""

from .auth import Caller
from .base import CamelModel
from .enums import (
    CallerRole,
    CancellationReason,
    CancelledBy,
    DiscountType,
    NotificationChannel,
    NotificationEvent,
    OrderSortField,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    SortOrder,
)
from .errors import (
    ERROR_MESSAGES,
    ERROR_STATUS_CODES,
    ERROR_USER_MESSAGES,
    ErrorDetails,
    ErrorEnvelope,
    OrderError,
    OrderErrorCode,
    describe_unknown_error,
)
from .notification import (
    NotificationAudience,
    NotificationPayload,
    OutboxMessage,
    OutboxStatus,
)
from .order import (
    BookingInfo,
    CancellationInfo,
    Coordinates,
    CustomerInfo,
    Discount,
    EmergencyContact,
    Location,
    Order,
    OrderFilters,
    OrderPage,
    OrderStats,
    PaymentDetails,
    PaymentInfo,
    PricingDetails,
    RefundPolicy,
)
from .service import TourService

__all__ = [
    # Auth
    "Caller",
    "CamelModel",
    # Enums
    "CallerRole",
    "CancellationReason",
    "CancelledBy",
    "DiscountType",
    "NotificationChannel",
    "NotificationEvent",
    "OrderSortField",
    "OrderStatus",
    "PaymentMethod",
    "PaymentStatus",
    "SortOrder",
    # Errors
    "ERROR_MESSAGES",
    "ERROR_STATUS_CODES",
    "ERROR_USER_MESSAGES",
    "ErrorDetails",
    "ErrorEnvelope",
    "OrderError",
    "OrderErrorCode",
    "describe_unknown_error",
    # Notifications
    "NotificationAudience",
    "NotificationPayload",
    "OutboxMessage",
    "OutboxStatus",
    # Order
    "BookingInfo",
    "CancellationInfo",
    "Coordinates",
    "CustomerInfo",
    "Discount",
    "EmergencyContact",
    "Location",
    "Order",
    "OrderFilters",
    "OrderPage",
    "OrderStats",
    "PaymentDetails",
    "PaymentInfo",
    "PricingDetails",
    "RefundPolicy",
    # Service catalog
    "TourService",
]
