"""Order endpoints for the booking lifecycle.

Provides REST endpoints for:
- Listing orders visible to the caller (filters, pagination, sorting)
- Creating orders (DRAFT) against a catalog service
- Retrieving, updating and cancelling a single order
- Order statistics (admin only)

All endpoints require a bearer token (header or ``auth-token`` cookie).
Admins can access every order; other callers only orders where they are the
customer or the guide.

Notification intents recorded by a mutation are delivered by the outbox
worker after the response is sent.
"""

import datetime as dt

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from starlette.status import HTTP_201_CREATED

from guidee_api.dependencies import get_order_service, get_outbox_worker
from guidee_api.models.common import ApiResponse
from guidee_api.security import get_current_caller
from guidee_shared.models import (
    Caller,
    Order,
    OrderError,
    OrderErrorCode,
    OrderPage,
    OrderSortField,
    OrderStats,
    OrderStatus,
    SortOrder,
)
from guidee_shared.models.requests import (
    OrderCancel,
    OrderCreate,
    OrderListParams,
    OrderUpdate,
)
from guidee_shared.services.order_service import OrderService
from guidee_shared.services.outbox import OutboxWorker

router = APIRouter(tags=["orders"])


def parse_statuses(raw: str | None) -> list[OrderStatus]:
    """Parse a comma-separated status filter, e.g. ``PENDING,CONFIRMED``."""
    if not raw:
        return []
    statuses = []
    for value in raw.split(","):
        value = value.strip().upper()
        if not value:
            continue
        try:
            statuses.append(OrderStatus(value))
        except ValueError:
            raise OrderError(
                OrderErrorCode.INVALID_REQUEST_DATA, f"unknown status filter {value!r}"
            ) from None
    return statuses


@router.get(
    "/orders",
    summary="List orders",
    description="""
List orders visible to the caller.

**Notes:**
- Non-admins only see orders where they are the customer or the guide
- `status` accepts a comma-separated list
- `sortBy` is one of `createdAt`, `date`, `total`
""",
    response_model=ApiResponse[OrderPage],
)
async def list_orders(
    status: str | None = Query(default=None, description="Comma-separated statuses"),
    user_id: str | None = Query(default=None, alias="userId"),
    guide_id: str | None = Query(default=None, alias="guideId"),
    start_date: dt.date | None = Query(default=None, alias="startDate"),
    end_date: dt.date | None = Query(default=None, alias="endDate"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    sort_by: OrderSortField = Query(default=OrderSortField.CREATED_AT, alias="sortBy"),
    sort_order: SortOrder = Query(default=SortOrder.DESC, alias="sortOrder"),
    caller: Caller = Depends(get_current_caller),
    service: OrderService = Depends(get_order_service),
) -> ApiResponse[OrderPage]:
    params = OrderListParams(
        statuses=parse_statuses(status),
        user_id=user_id,
        guide_id=guide_id,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return ApiResponse(data=service.list_orders(caller, params))


@router.post(
    "/orders",
    summary="Create order",
    description="""
Create a new order for the caller.

Looks up the service, computes pricing (10% service fee, 5% tax, optional
discount code) and stores the order as `DRAFT`.

**Notes:**
- Participants must be between 1 and 20
- Inactive or unknown services are rejected
- The customer id is taken from the token
""",
    response_model=ApiResponse[Order],
    status_code=HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid data, participant limit or unavailable service"},
        401: {"description": "Token required"},
    },
)
async def create_order(
    body: OrderCreate,
    background_tasks: BackgroundTasks,
    caller: Caller = Depends(get_current_caller),
    service: OrderService = Depends(get_order_service),
    worker: OutboxWorker = Depends(get_outbox_worker),
) -> ApiResponse[Order]:
    order = service.create_order(caller, body)
    background_tasks.add_task(worker.drain)
    return ApiResponse(data=order, message="Order created successfully")


@router.get(
    "/orders/stats",
    summary="Order statistics",
    description="Counts of orders by status. **Admin only.**",
    response_model=ApiResponse[OrderStats],
)
async def get_order_stats(
    caller: Caller = Depends(get_current_caller),
    service: OrderService = Depends(get_order_service),
) -> ApiResponse[OrderStats]:
    return ApiResponse(data=service.get_stats(caller))


@router.get(
    "/orders/{order_id}",
    summary="Get order by ID",
    response_model=ApiResponse[Order],
    responses={
        403: {"description": "Caller is neither customer, guide nor admin"},
        404: {"description": "Order not found"},
    },
)
async def get_order(
    order_id: str,
    caller: Caller = Depends(get_current_caller),
    service: OrderService = Depends(get_order_service),
) -> ApiResponse[Order]:
    return ApiResponse(data=service.get_order(caller, order_id))


@router.put(
    "/orders/{order_id}",
    summary="Update order",
    description="""
Update an order's status, payment status and/or notes.

Status changes must follow the order state machine:
DRAFT → PENDING → CONFIRMED → PAID → IN_PROGRESS → COMPLETED,
and CANCELLED → REFUNDED. Use `DELETE /orders/{id}` to cancel.
""",
    response_model=ApiResponse[Order],
    responses={
        400: {"description": "Invalid status transition or request data"},
        403: {"description": "No access to this order"},
        404: {"description": "Order not found"},
    },
)
async def update_order(
    order_id: str,
    body: OrderUpdate,
    background_tasks: BackgroundTasks,
    caller: Caller = Depends(get_current_caller),
    service: OrderService = Depends(get_order_service),
    worker: OutboxWorker = Depends(get_outbox_worker),
) -> ApiResponse[Order]:
    order = service.update_order(caller, order_id, body)
    background_tasks.add_task(worker.drain)
    return ApiResponse(data=order, message="Order updated successfully")


@router.delete(
    "/orders/{order_id}",
    summary="Cancel order",
    description="""
Cancel an order and record its refund snapshot.

**Refund policy:**
- 48+ hours before the tour: 100%
- 24-48 hours: 50%
- Under 24 hours: no refund
- Refunds carry a 3% processing fee, capped at NT$100
""",
    response_model=ApiResponse[Order],
    responses={
        400: {"description": "Missing reason or order can no longer be cancelled"},
        403: {"description": "No access to this order"},
        404: {"description": "Order not found"},
    },
)
async def cancel_order(
    order_id: str,
    body: OrderCancel,
    background_tasks: BackgroundTasks,
    caller: Caller = Depends(get_current_caller),
    service: OrderService = Depends(get_order_service),
    worker: OutboxWorker = Depends(get_outbox_worker),
) -> ApiResponse[Order]:
    order = service.cancel_order(caller, order_id, body)
    background_tasks.add_task(worker.drain)
    return ApiResponse(data=order, message="Order cancelled successfully")
