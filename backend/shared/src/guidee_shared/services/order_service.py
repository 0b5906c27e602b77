"""Order lifecycle service.

Business logic behind the order endpoints: listing, creation, status updates,
cancellation with refund snapshot, and payment. Every mutation records its
notification intents in the outbox; delivery happens afterwards and never
affects the outcome of the mutation.

Access rules:
- Admins see and modify every order
- Customers and guides see and modify only orders they participate in
- Only the customer (or an admin) pays for an order
"""

import datetime as dt
import math
import random
import uuid
from collections.abc import Callable
from zoneinfo import ZoneInfo

from guidee_shared.models import (
    BookingInfo,
    CancellationInfo,
    Caller,
    NotificationEvent,
    Order,
    OrderError,
    OrderErrorCode,
    OrderFilters,
    OrderPage,
    OrderStats,
    OrderStatus,
    PaymentInfo,
    PaymentMethod,
    PaymentStatus,
)
from guidee_shared.models.requests import (
    OrderCancel,
    OrderCreate,
    OrderListParams,
    OrderUpdate,
    PaymentStatusView,
)
from guidee_shared.utils.logging import get_logger, log_order_operation

from .order_repository import OrderRepository, utc_now
from .order_status import (
    cancelled_by_for,
    ensure_access,
    ensure_cancellable,
    validate_status_transition,
)
from .outbox import NotificationOutbox
from .payment_service import PaymentProcessor
from .pricing import compute_pricing
from .refund_policy_service import RefundPolicyService
from .service_catalog import ServiceCatalog

logger = get_logger(__name__)

MIN_PARTICIPANTS = 1
MAX_PARTICIPANTS = 20
ORDER_NUMBER_PREFIX = "GD"
MAX_ORDER_NUMBER_ATTEMPTS = 10


def _end_time(start_time: str, duration_hours: float) -> str:
    """Start time plus duration as HH:MM, wrapping past midnight."""
    hour, minute = (int(part) for part in start_time.split(":"))
    total = hour * 60 + minute + round(duration_hours * 60)
    total %= 24 * 60
    return f"{total // 60:02d}:{total % 60:02d}"


class OrderService:
    """Order operations for the API layer."""

    def __init__(
        self,
        repository: OrderRepository,
        catalog: ServiceCatalog,
        outbox: NotificationOutbox,
        payments: PaymentProcessor,
        refund_policy: RefundPolicyService | None = None,
        timezone: str = "Asia/Taipei",
        clock: Callable[[], dt.datetime] = utc_now,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the order service.

        Args:
            repository: Order store
            catalog: Bookable tour services
            outbox: Queue for notification intents
            payments: Payment gateway
            refund_policy: Refund calculator (default policy if omitted)
            timezone: IANA zone tour dates and start times are expressed in
            clock: Source of the current time
            rng: Random source for order numbers
        """
        self.repository = repository
        self.catalog = catalog
        self.outbox = outbox
        self.payments = payments
        self.refund_policy = refund_policy or RefundPolicyService()
        self.timezone = timezone
        self.clock = clock
        self.rng = rng or random.Random()

    def _load(self, caller: Caller, order_id: str) -> Order:
        order = self.repository.get_by_id(order_id)
        if order is None:
            raise OrderError(OrderErrorCode.ORDER_NOT_FOUND, order_id)
        ensure_access(caller, order)
        return order

    def _generate_order_number(self) -> str:
        """Generate a unique order number like GD2611XXXX.

        Format is the prefix, two-digit year and month in the service timezone,
        and four random digits. Collisions with stored orders are retried.
        """
        local_now = self.clock().astimezone(ZoneInfo(self.timezone))
        stem = f"{ORDER_NUMBER_PREFIX}{local_now:%y%m}"
        for _ in range(MAX_ORDER_NUMBER_ATTEMPTS):
            candidate = f"{stem}{self.rng.randint(0, 9999):04d}"
            if not self.repository.exists_order_number(candidate):
                return candidate
            logger.warning("Order number collision on %s, retrying", candidate)

        raise RuntimeError(
            f"Could not allocate a unique order number after {MAX_ORDER_NUMBER_ATTEMPTS} attempts"
        )

    def list_orders(self, caller: Caller, params: OrderListParams) -> OrderPage:
        """List orders visible to the caller.

        Non-admins only ever see orders they are customer or guide on; the
        other filters narrow that set further.
        """
        filters = OrderFilters(
            statuses=params.statuses,
            participant_id=None if caller.is_admin else caller.id,
            user_id=params.user_id,
            guide_id=params.guide_id,
            start_date=params.start_date,
            end_date=params.end_date,
            sort_by=params.sort_by,
            sort_order=params.sort_order,
        )
        matching = self.repository.search(filters)

        total = len(matching)
        start = (params.page - 1) * params.limit
        return OrderPage(
            orders=matching[start : start + params.limit],
            total=total,
            page=params.page,
            limit=params.limit,
            total_pages=math.ceil(total / params.limit),
        )

    def create_order(self, caller: Caller, request: OrderCreate) -> Order:
        """Create a DRAFT order for the caller.

        Raises:
            OrderError: PARTICIPANT_LIMIT_EXCEEDED, SERVICE_NOT_AVAILABLE
        """
        if not MIN_PARTICIPANTS <= request.participants <= MAX_PARTICIPANTS:
            raise OrderError(
                OrderErrorCode.PARTICIPANT_LIMIT_EXCEEDED,
                f"requested={request.participants}",
            )

        service = self.catalog.get_bookable(request.service_id)
        if service is None:
            raise OrderError(OrderErrorCode.SERVICE_NOT_AVAILABLE, request.service_id)

        booking = BookingInfo(
            service_id=service.id,
            service_name=service.name,
            service_image=service.image,
            guide_id=service.guide_id,
            guide_name=service.guide_name,
            guide_avatar=service.guide_avatar,
            date=request.date,
            start_time=request.start_time,
            end_time=_end_time(request.start_time, service.duration_hours),
            duration=service.duration_hours,
            participants=request.participants,
            location=service.location,
            special_requests=request.special_requests,
        )
        pricing = compute_pricing(service.base_price, request.participants, request.discount_code)

        now = self.clock()
        order = Order(
            id=f"order-{uuid.uuid4().hex}",
            order_number=self._generate_order_number(),
            user_id=caller.id,
            status=OrderStatus.DRAFT,
            booking=booking,
            customer=request.customer,
            pricing=pricing,
            payment=PaymentInfo(),
            created_at=now,
            updated_at=now,
        )
        self.repository.add(order)
        self.outbox.enqueue_order_event(NotificationEvent.ORDER_CREATED, order)

        log_order_operation(
            logger,
            "create_order",
            order_id=order.id,
            order_number=order.order_number,
            status=order.status.value,
            amount=order.pricing.total,
            user_id=caller.id,
            service_id=service.id,
        )
        return order

    def get_order(self, caller: Caller, order_id: str) -> Order:
        """Fetch one order.

        Raises:
            OrderError: ORDER_NOT_FOUND, INSUFFICIENT_PERMISSIONS
        """
        return self._load(caller, order_id)

    def update_order(self, caller: Caller, order_id: str, request: OrderUpdate) -> Order:
        """Apply a status, payment status and/or notes change.

        Cancellation goes through cancel_order, which records the refund
        snapshot; requesting CANCELLED here is rejected.
        Payment state (PAID status, payment status) is admin only here;
        customers pay through confirm_payment.

        Raises:
            OrderError: ORDER_NOT_FOUND, INSUFFICIENT_PERMISSIONS,
                INVALID_STATUS_TRANSITION, INVALID_REQUEST_DATA
        """
        order = self._load(caller, order_id)
        if not caller.is_admin and (
            request.payment_status is not None
            or (request.status == OrderStatus.PAID and order.status != OrderStatus.PAID)
        ):
            raise OrderError(
                OrderErrorCode.INSUFFICIENT_PERMISSIONS,
                f"User {caller.id} cannot set payment state on order {order_id}",
            )
        now = self.clock()
        patch: dict = {}
        payment = order.payment.model_copy()
        payment_changed = False
        newly_confirmed = False

        if request.status is not None and request.status != order.status:
            if request.status == OrderStatus.CANCELLED:
                raise OrderError(
                    OrderErrorCode.INVALID_REQUEST_DATA,
                    "use the cancel operation to cancel an order",
                )
            validate_status_transition(order.status, request.status)
            patch["status"] = request.status

            if request.status == OrderStatus.CONFIRMED and order.confirmed_at is None:
                patch["confirmed_at"] = now
                newly_confirmed = True
            if request.status == OrderStatus.COMPLETED and order.completed_at is None:
                patch["completed_at"] = now
            if request.status == OrderStatus.REFUNDED and order.cancellation is not None:
                payment.status = PaymentStatus.REFUNDED
                payment.refunded_at = now
                payment.refund_amount = order.cancellation.refund_policy.refund_amount
                payment_changed = True

        if request.payment_status is not None:
            payment.status = request.payment_status
            if request.payment_status == PaymentStatus.COMPLETED and payment.paid_at is None:
                payment.paid_at = now
            payment_changed = True

        if payment_changed:
            patch["payment"] = payment
        if request.notes is not None:
            patch["notes"] = request.notes

        updated = self.repository.update(order_id, patch)
        if updated is None:
            raise OrderError(OrderErrorCode.ORDER_NOT_FOUND, order_id)

        if newly_confirmed:
            self.outbox.enqueue_order_event(NotificationEvent.ORDER_CONFIRMED, updated)

        log_order_operation(
            logger,
            "update_order",
            order_id=updated.id,
            order_number=updated.order_number,
            status=updated.status.value,
            previous_status=order.status.value,
            user_id=caller.id,
        )
        return updated

    def cancel_order(self, caller: Caller, order_id: str, request: OrderCancel) -> Order:
        """Cancel an order and snapshot its refund.

        Raises:
            OrderError: INVALID_REQUEST_DATA (no reason), ORDER_NOT_FOUND,
                INSUFFICIENT_PERMISSIONS, CANCELLATION_NOT_ALLOWED
        """
        if request.reason is None:
            raise OrderError(OrderErrorCode.INVALID_REQUEST_DATA, "cancellation reason is required")

        order = self._load(caller, order_id)
        ensure_cancellable(order.status)

        now = self.clock()
        refund = self.refund_policy.calculate(
            order.pricing.total,
            order.booking.start_datetime(self.timezone),
            now,
        )
        cancellation = CancellationInfo(
            reason=request.reason,
            description=request.description,
            cancelled_by=cancelled_by_for(caller, order),
            cancelled_at=now,
            refund_policy=refund,
        )

        updated = self.repository.update(
            order_id,
            {"status": OrderStatus.CANCELLED, "cancellation": cancellation},
        )
        if updated is None:
            raise OrderError(OrderErrorCode.ORDER_NOT_FOUND, order_id)

        self.outbox.enqueue_order_event(NotificationEvent.ORDER_CANCELLED, updated)

        log_order_operation(
            logger,
            "cancel_order",
            order_id=updated.id,
            order_number=updated.order_number,
            status=updated.status.value,
            amount=refund.refund_amount,
            reason=request.reason.value,
            cancelled_by=cancellation.cancelled_by.value,
            refund_percentage=refund.refund_percentage,
        )
        return updated

    def confirm_payment(
        self,
        caller: Caller,
        order_id: str,
        method: PaymentMethod,
        token: str,
    ) -> Order:
        """Charge a CONFIRMED order and move it to PAID.

        A declined charge records the payment as FAILED and leaves the order
        status unchanged.

        Raises:
            OrderError: ORDER_NOT_FOUND, INSUFFICIENT_PERMISSIONS,
                INVALID_STATUS_TRANSITION, PAYMENT_FAILED
        """
        order = self.repository.get_by_id(order_id)
        if order is None:
            raise OrderError(OrderErrorCode.ORDER_NOT_FOUND, order_id)
        if not caller.is_admin and caller.id != order.user_id:
            raise OrderError(
                OrderErrorCode.INSUFFICIENT_PERMISSIONS,
                f"User {caller.id} cannot pay for order {order_id}",
            )
        validate_status_transition(order.status, OrderStatus.PAID)

        result = self.payments.charge(order.id, method, token, order.pricing.total)

        if not result.success:
            payment = order.payment.model_copy(update={"method": method, "status": PaymentStatus.FAILED})
            self.repository.update(order_id, {"payment": payment})
            log_order_operation(
                logger,
                "confirm_payment",
                order_id=order.id,
                order_number=order.order_number,
                amount=order.pricing.total,
                error=result.error or "declined",
            )
            raise OrderError(OrderErrorCode.PAYMENT_FAILED, result.error)

        payment = order.payment.model_copy(
            update={
                "method": method,
                "status": PaymentStatus.COMPLETED,
                "transaction_id": result.transaction_id,
                "paid_at": self.clock(),
                "payment_details": result.payment_details,
            }
        )
        updated = self.repository.update(
            order_id, {"status": OrderStatus.PAID, "payment": payment}
        )
        if updated is None:
            raise OrderError(OrderErrorCode.ORDER_NOT_FOUND, order_id)

        self.outbox.enqueue_order_event(NotificationEvent.PAYMENT_COMPLETED, updated)

        log_order_operation(
            logger,
            "confirm_payment",
            order_id=updated.id,
            order_number=updated.order_number,
            status=updated.status.value,
            amount=updated.pricing.total,
            transaction_id=result.transaction_id,
        )
        return updated

    def get_payment_status(self, caller: Caller, order_id: str) -> PaymentStatusView:
        order = self._load(caller, order_id)
        return PaymentStatusView(
            payment_status=order.payment.status,
            payment_method=order.payment.method,
            paid_at=order.payment.paid_at,
            transaction_id=order.payment.transaction_id,
        )

    def get_stats(self, caller: Caller) -> OrderStats:
        """Order counts by status. Admin only."""
        if not caller.is_admin:
            raise OrderError(
                OrderErrorCode.INSUFFICIENT_PERMISSIONS,
                f"User {caller.id} cannot view order statistics",
            )
        return self.repository.get_stats()
