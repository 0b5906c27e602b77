"""Payment endpoints for orders.

Provides REST endpoints for:
- Paying for a confirmed order (customer or admin)
- Checking an order's payment status

Payments go through the configured payment processor. A declined charge
marks the order's payment FAILED and answers PAYMENT_FAILED; the order
stays CONFIRMED so the customer can retry.
"""

from fastapi import APIRouter, BackgroundTasks, Depends

from guidee_api.dependencies import get_order_service, get_outbox_worker
from guidee_api.models.common import ApiResponse
from guidee_api.security import get_current_caller
from guidee_shared.models import Caller, Order
from guidee_shared.models.requests import PaymentRequest, PaymentStatusView
from guidee_shared.services.order_service import OrderService
from guidee_shared.services.outbox import OutboxWorker

router = APIRouter(tags=["payments"])


@router.post(
    "/orders/{order_id}/payment",
    summary="Pay for an order",
    description="""
Charge the order total and move the order from CONFIRMED to PAID.

**Notes:**
- Only the customer who placed the order (or an admin) can pay
- The order must be CONFIRMED by the guide first
""",
    response_model=ApiResponse[Order],
    responses={
        400: {"description": "Payment declined or order not payable"},
        403: {"description": "Caller is not the order's customer"},
        404: {"description": "Order not found"},
    },
)
async def confirm_payment(
    order_id: str,
    body: PaymentRequest,
    background_tasks: BackgroundTasks,
    caller: Caller = Depends(get_current_caller),
    service: OrderService = Depends(get_order_service),
    worker: OutboxWorker = Depends(get_outbox_worker),
) -> ApiResponse[Order]:
    order = service.confirm_payment(caller, order_id, body.payment_method, body.payment_token)
    background_tasks.add_task(worker.drain)
    return ApiResponse(data=order, message="Payment completed successfully")


@router.get(
    "/orders/{order_id}/payment",
    summary="Get payment status",
    response_model=ApiResponse[PaymentStatusView],
)
async def get_payment_status(
    order_id: str,
    caller: Caller = Depends(get_current_caller),
    service: OrderService = Depends(get_order_service),
) -> ApiResponse[PaymentStatusView]:
    return ApiResponse(data=service.get_payment_status(caller, order_id))
