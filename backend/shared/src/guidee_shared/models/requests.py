"""Validated inputs for order operations.

Unknown fields are rejected (``extra="forbid"``) so malformed bodies never
reach business logic. Participant bounds are checked by the order
service, which reports them as PARTICIPANT_LIMIT_EXCEEDED.
"""

import datetime as dt
from typing import Optional

from pydantic import ConfigDict, Field

from .base import CamelModel
from .enums import (
    CancellationReason,
    OrderSortField,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    SortOrder,
)
from .order import TIME_OF_DAY_PATTERN, CustomerInfo


class OrderCreate(CamelModel):
    """Request to create a new order.

    The customer (user) id is not included - it's derived from the token.
    """

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "examples": [
                {
                    "serviceId": "service-001",
                    "date": "2026-11-20",
                    "startTime": "09:00",
                    "participants": 2,
                    "customer": {
                        "name": "Ming Wang",
                        "email": "wang@example.com",
                        "phone": "0912345678",
                    },
                    "specialRequests": "More on the building's history, please",
                    "discountCode": "WELCOME10",
                }
            ]
        },
    )

    service_id: str = Field(..., min_length=1, description="Service to book")
    date: dt.date = Field(..., description="Tour date (YYYY-MM-DD)")
    start_time: str = Field(..., pattern=TIME_OF_DAY_PATTERN, description="Start time (HH:MM)")
    participants: int = Field(..., description="Number of participants (1-20)")
    customer: CustomerInfo
    special_requests: Optional[str] = Field(default=None, max_length=500)
    discount_code: Optional[str] = Field(default=None, max_length=32)


class OrderUpdate(CamelModel):
    """Request to update an order's status, payment status or notes."""

    model_config = ConfigDict(extra="forbid")

    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None
    notes: Optional[str] = Field(default=None, max_length=1000)


class OrderCancel(CamelModel):
    """Request to cancel an order. ``reason`` is required by the service."""

    model_config = ConfigDict(extra="forbid")

    reason: Optional[CancellationReason] = None
    description: Optional[str] = Field(default=None, max_length=1000)


class PaymentRequest(CamelModel):
    """Request to pay for a confirmed order."""

    model_config = ConfigDict(extra="forbid")

    payment_method: PaymentMethod = PaymentMethod.CREDIT_CARD
    payment_token: str = Field(..., min_length=1)


class PaymentStatusView(CamelModel):
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    paid_at: Optional[dt.datetime] = None
    transaction_id: Optional[str] = None


class OrderListParams(CamelModel):
    """Filters, pagination and sorting for order listing."""

    statuses: list[OrderStatus] = Field(default_factory=list)
    user_id: Optional[str] = None
    guide_id: Optional[str] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    sort_by: OrderSortField = OrderSortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC
