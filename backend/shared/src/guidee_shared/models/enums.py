"""Enumeration types for Guidee order data models."""

from enum import Enum


class OrderStatus(str, Enum):
    """Lifecycle status of an order."""

    DRAFT = "DRAFT"  # Booking started, not yet submitted
    PENDING = "PENDING"  # Waiting for the guide to confirm
    CONFIRMED = "CONFIRMED"
    PAID = "PAID"
    IN_PROGRESS = "IN_PROGRESS"  # Tour has started
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class PaymentStatus(str, Enum):
    """Payment status for an order."""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"
    CANCELLED = "CANCELLED"


class PaymentMethod(str, Enum):
    """Supported payment methods."""

    CREDIT_CARD = "CREDIT_CARD"
    BANK_TRANSFER = "BANK_TRANSFER"
    PAYPAL = "PAYPAL"
    LINE_PAY = "LINE_PAY"
    APPLE_PAY = "APPLE_PAY"
    GOOGLE_PAY = "GOOGLE_PAY"


class CancellationReason(str, Enum):
    """Why an order was cancelled."""

    USER_REQUEST = "USER_REQUEST"
    GUIDE_UNAVAILABLE = "GUIDE_UNAVAILABLE"
    WEATHER = "WEATHER"
    FORCE_MAJEURE = "FORCE_MAJEURE"
    SCHEDULE_CONFLICT = "SCHEDULE_CONFLICT"
    HEALTH_SAFETY = "HEALTH_SAFETY"
    QUALITY_ISSUE = "QUALITY_ISSUE"
    OTHER = "OTHER"


class CancelledBy(str, Enum):
    """Party that cancelled an order."""

    USER = "USER"
    GUIDE = "GUIDE"
    ADMIN = "ADMIN"


class DiscountType(str, Enum):
    """How a discount code reduces the price."""

    PERCENTAGE = "PERCENTAGE"
    FIXED = "FIXED"


class CallerRole(str, Enum):
    """Roles carried in bearer tokens."""

    USER = "user"
    GUIDE = "guide"
    ADMIN = "admin"


class OrderSortField(str, Enum):
    """Sort keys accepted by order listing."""

    CREATED_AT = "createdAt"
    DATE = "date"
    TOTAL = "total"


class SortOrder(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


class NotificationChannel(str, Enum):
    """Delivery channel for a notification."""

    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"


class NotificationEvent(str, Enum):
    """Order events that produce notifications."""

    ORDER_CREATED = "order_created"
    ORDER_CONFIRMED = "order_confirmed"
    PAYMENT_COMPLETED = "payment_completed"
    ORDER_CANCELLED = "order_cancelled"
