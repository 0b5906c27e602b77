"""Order status state machine and access rules."""

from guidee_shared.models import (
    Caller,
    CancelledBy,
    Order,
    OrderError,
    OrderErrorCode,
    OrderStatus,
)

ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.DRAFT: frozenset({OrderStatus.PENDING, OrderStatus.CANCELLED}),
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PAID, OrderStatus.CANCELLED}),
    OrderStatus.PAID: frozenset({OrderStatus.IN_PROGRESS, OrderStatus.CANCELLED}),
    OrderStatus.IN_PROGRESS: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset({OrderStatus.REFUNDED}),
    OrderStatus.REFUNDED: frozenset(),
}

CANCELLABLE_STATUSES: frozenset[OrderStatus] = frozenset(
    {
        OrderStatus.DRAFT,
        OrderStatus.PENDING,
        OrderStatus.CONFIRMED,
        OrderStatus.PAID,
    }
)


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, frozenset())


def validate_status_transition(current: OrderStatus, new: OrderStatus) -> None:
    """Raise unless ``current -> new`` is an edge of the transition table.

    Raises:
        OrderError: INVALID_STATUS_TRANSITION
    """
    if not can_transition(current, new):
        raise OrderError(
            OrderErrorCode.INVALID_STATUS_TRANSITION,
            f"Cannot transition from {current.value} to {new.value}",
        )


def ensure_cancellable(status: OrderStatus) -> None:
    """Raise unless an order in ``status`` may be cancelled.

    Raises:
        OrderError: CANCELLATION_NOT_ALLOWED
    """
    if status not in CANCELLABLE_STATUSES:
        raise OrderError(
            OrderErrorCode.CANCELLATION_NOT_ALLOWED,
            f"Orders in status {status.value} cannot be cancelled",
        )


def ensure_access(caller: Caller, order: Order) -> None:
    """Admins may access any order; others only their own or their tours.

    Raises:
        OrderError: INSUFFICIENT_PERMISSIONS
    """
    if caller.is_admin:
        return

    if not order.is_participant(caller.id):
        raise OrderError(
            OrderErrorCode.INSUFFICIENT_PERMISSIONS,
            f"User {caller.id} has no access to order {order.id}",
        )


def cancelled_by_for(caller: Caller, order: Order) -> CancelledBy:
    """Derive who cancelled from the caller's identity."""
    if caller.is_admin:
        return CancelledBy.ADMIN
    if caller.id == order.booking.guide_id:
        return CancelledBy.GUIDE
    return CancelledBy.USER
