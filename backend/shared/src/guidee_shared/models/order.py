"""Order model and its embedded booking, pricing, payment and cancellation records.

Amounts are whole TWD (no minor units).
"""

import datetime as dt
from typing import Optional
from zoneinfo import ZoneInfo

from pydantic import Field, model_validator

from .base import CamelModel
from .enums import (
    CancellationReason,
    CancelledBy,
    DiscountType,
    OrderSortField,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    SortOrder,
)

# A cancellation record exists exactly while the order is in one of these
STATUSES_WITH_CANCELLATION = frozenset({OrderStatus.CANCELLED, OrderStatus.REFUNDED})

# 24-hour clock time, 00:00 through 23:59
TIME_OF_DAY_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class Coordinates(CamelModel):
    lat: float
    lng: float


class Location(CamelModel):
    """Meeting point for a tour."""

    name: str
    address: str
    coordinates: Optional[Coordinates] = None


class BookingInfo(CamelModel):
    """Service, schedule and party details embedded in an order."""

    service_id: str
    service_name: str
    service_image: str = ""
    guide_id: str
    guide_name: str
    guide_avatar: Optional[str] = None
    date: dt.date = Field(..., description="Tour date (YYYY-MM-DD)")
    start_time: str = Field(..., pattern=TIME_OF_DAY_PATTERN, description="HH:MM")
    end_time: str = Field(..., pattern=TIME_OF_DAY_PATTERN, description="HH:MM")
    duration: float = Field(..., gt=0, description="Duration in hours")
    participants: int = Field(..., ge=1)
    location: Location
    special_requests: Optional[str] = None

    def start_datetime(self, tz: str) -> dt.datetime:
        """Tour start as an aware datetime in the service timezone."""
        hour, minute = (int(part) for part in self.start_time.split(":"))
        return dt.datetime.combine(self.date, dt.time(hour, minute), tzinfo=ZoneInfo(tz))


class Discount(CamelModel):
    type: DiscountType
    value: int
    code: Optional[str] = None
    description: str
    amount: int = Field(..., ge=0, description="Amount deducted from the total")


class PricingDetails(CamelModel):
    """Price breakdown computed at order creation."""

    base_price: int = Field(..., ge=0, description="Price per participant")
    participants: int = Field(..., ge=1)
    subtotal: int
    service_fee: int
    tax: int
    discount: Optional[Discount] = None
    total: int = Field(..., ge=0)
    currency: str = "TWD"


class EmergencyContact(CamelModel):
    name: str
    phone: str
    relationship: str


class CustomerInfo(CamelModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    phone: str = ""
    nationality: Optional[str] = None
    emergency_contact: Optional[EmergencyContact] = None
    special_needs: Optional[str] = None


class PaymentDetails(CamelModel):
    card_last4: Optional[str] = None
    card_brand: Optional[str] = None
    bank_name: Optional[str] = None


class PaymentInfo(CamelModel):
    method: PaymentMethod = PaymentMethod.CREDIT_CARD
    status: PaymentStatus = PaymentStatus.PENDING
    transaction_id: Optional[str] = None
    paid_at: Optional[dt.datetime] = None
    refunded_at: Optional[dt.datetime] = None
    refund_amount: Optional[int] = None
    payment_details: Optional[PaymentDetails] = None


class RefundPolicy(CamelModel):
    """Refund snapshot taken at cancellation time."""

    is_refundable: bool
    refund_percentage: int = Field(..., ge=0, le=100)
    refund_amount: int = Field(..., ge=0)
    processing_fee: int = Field(..., ge=0)


class CancellationInfo(CamelModel):
    reason: CancellationReason
    description: Optional[str] = None
    cancelled_by: CancelledBy
    cancelled_at: dt.datetime
    refund_policy: RefundPolicy


class Order(CamelModel):
    """One booking-to-payment lifecycle record."""

    id: str
    order_number: str
    user_id: str = Field(..., description="Customer (booking user) ID")
    status: OrderStatus
    booking: BookingInfo
    customer: CustomerInfo
    pricing: PricingDetails
    payment: PaymentInfo
    cancellation: Optional[CancellationInfo] = None

    created_at: dt.datetime
    updated_at: dt.datetime
    confirmed_at: Optional[dt.datetime] = None
    completed_at: Optional[dt.datetime] = None

    notes: Optional[str] = None
    internal_notes: Optional[str] = None

    @model_validator(mode="after")
    def _cancellation_matches_status(self) -> "Order":
        has_record = self.cancellation is not None
        if has_record != (self.status in STATUSES_WITH_CANCELLATION):
            raise ValueError(
                f"cancellation record must be present only for cancelled orders "
                f"(status={self.status.value}, has_record={has_record})"
            )
        return self

    def is_participant(self, user_id: str) -> bool:
        """True if the user is this order's customer or guide."""
        return user_id == self.user_id or user_id == self.booking.guide_id


class OrderFilters(CamelModel):
    """Search criteria for the order store."""

    statuses: list[OrderStatus] = Field(default_factory=list)
    participant_id: Optional[str] = Field(
        default=None, description="Restrict to orders where this user is customer or guide"
    )
    user_id: Optional[str] = None
    guide_id: Optional[str] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    sort_by: OrderSortField = OrderSortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC


class OrderStats(CamelModel):
    total: int
    pending: int
    confirmed: int
    completed: int
    cancelled: int


class OrderPage(CamelModel):
    """One page of an order listing."""

    orders: list[Order]
    total: int
    page: int
    limit: int
    total_pages: int
