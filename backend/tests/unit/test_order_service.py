"""Unit tests for OrderService.

Covers creation, access control, status updates, cancellation with refund
snapshots, payment and listing. Uses the in-memory repository and a fixed
clock from conftest.
"""

import datetime as dt
import re

import pytest

from guidee_shared.models import (
    CancellationReason,
    CancelledBy,
    NotificationEvent,
    OrderError,
    OrderErrorCode,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from guidee_shared.models.requests import OrderCancel, OrderListParams, OrderUpdate


class SequenceRandom:
    """Random stand-in returning preset integers."""

    def __init__(self, values: list[int]) -> None:
        self.values = list(values)

    def randint(self, a: int, b: int) -> int:
        return self.values.pop(0)


def _advance(service, order, caller, *statuses: OrderStatus):
    for status in statuses:
        order = service.update_order(caller, order.id, OrderUpdate(status=status))
    return order


class TestCreateOrder:
    """Tests for order creation."""

    def test_creates_draft_with_pricing(self, order_service, customer, create_request) -> None:
        order = order_service.create_order(customer, create_request)

        assert order.status == OrderStatus.DRAFT
        assert order.user_id == "user-001"
        assert order.id.startswith("order-")
        assert order.pricing.total == 1848
        assert order.payment.status == PaymentStatus.PENDING
        assert order.cancellation is None
        assert order.created_at == order.updated_at

    def test_booking_is_copied_from_the_service(self, order_service, customer, create_request) -> None:
        order = order_service.create_order(customer, create_request)

        assert order.booking.guide_id == "guide-001"
        assert order.booking.guide_name == "Mei Chang"
        assert order.booking.duration == 4
        assert order.booking.start_time == "09:00"
        assert order.booking.end_time == "13:00"

    def test_order_number_format(self, order_service, customer, create_request) -> None:
        order = order_service.create_order(customer, create_request)

        assert re.fullmatch(r"GD2611\d{4}", order.order_number)

    def test_order_number_month_follows_service_timezone(
        self, order_service, customer, create_request, clock
    ) -> None:
        # 2026-11-30 17:00 UTC is already 2026-12-01 01:00 in Taipei
        clock.set(dt.datetime(2026, 11, 30, 17, 0, tzinfo=dt.UTC))

        order = order_service.create_order(customer, create_request)

        assert order.order_number.startswith("GD2612")

    def test_order_number_collision_is_retried(
        self, order_service, customer, create_request
    ) -> None:
        order_service.rng = SequenceRandom([1234, 1234, 5678])

        first = order_service.create_order(customer, create_request)
        second = order_service.create_order(customer, create_request)

        assert first.order_number == "GD26111234"
        assert second.order_number == "GD26115678"

    def test_order_number_exhaustion_raises(
        self, order_service, customer, create_request
    ) -> None:
        order_service.rng = SequenceRandom([1] * 20)
        order_service.create_order(customer, create_request)

        with pytest.raises(RuntimeError):
            order_service.create_order(customer, create_request)

    def test_discount_code_applies(self, order_service, customer, create_request) -> None:
        request = create_request.model_copy(update={"discount_code": "SAVE100"})

        order = order_service.create_order(customer, request)

        assert order.pricing.total == 1748

    def test_queues_created_notifications(self, order_service, outbox, customer, create_request) -> None:
        order = order_service.create_order(customer, create_request)

        messages = outbox.messages(order.id)
        assert len(messages) == 2
        assert {m.event for m in messages} == {NotificationEvent.ORDER_CREATED}

    @pytest.mark.parametrize("participants", [0, 21, -1])
    def test_participant_bounds(self, order_service, customer, create_request, participants) -> None:
        request = create_request.model_copy(update={"participants": participants})

        with pytest.raises(OrderError) as exc_info:
            order_service.create_order(customer, request)

        assert exc_info.value.code == OrderErrorCode.PARTICIPANT_LIMIT_EXCEEDED

    @pytest.mark.parametrize("participants", [1, 20])
    def test_participant_bounds_are_inclusive(
        self, order_service, customer, create_request, participants
    ) -> None:
        request = create_request.model_copy(update={"participants": participants})

        assert order_service.create_order(customer, request).booking.participants == participants

    @pytest.mark.parametrize("service_id", ["service-retired", "service-unknown"])
    def test_unavailable_service(self, order_service, customer, create_request, service_id) -> None:
        request = create_request.model_copy(update={"service_id": service_id})

        with pytest.raises(OrderError) as exc_info:
            order_service.create_order(customer, request)

        assert exc_info.value.code == OrderErrorCode.SERVICE_NOT_AVAILABLE


class TestGetOrder:
    def test_participants_and_admin_can_read(
        self, order_service, customer, guide, admin, create_request
    ) -> None:
        order = order_service.create_order(customer, create_request)

        for caller in (customer, guide, admin):
            assert order_service.get_order(caller, order.id).id == order.id

    def test_stranger_is_forbidden(self, order_service, customer, stranger, create_request) -> None:
        order = order_service.create_order(customer, create_request)

        with pytest.raises(OrderError) as exc_info:
            order_service.get_order(stranger, order.id)

        assert exc_info.value.code == OrderErrorCode.INSUFFICIENT_PERMISSIONS

    def test_missing_order(self, order_service, admin) -> None:
        with pytest.raises(OrderError) as exc_info:
            order_service.get_order(admin, "order-missing")

        assert exc_info.value.code == OrderErrorCode.ORDER_NOT_FOUND
        assert exc_info.value.status_code == 404


class TestUpdateOrder:
    def test_invalid_transition_is_rejected(self, order_service, guide, customer, create_request) -> None:
        order = order_service.create_order(customer, create_request)

        with pytest.raises(OrderError) as exc_info:
            order_service.update_order(guide, order.id, OrderUpdate(status=OrderStatus.CONFIRMED))

        assert exc_info.value.code == OrderErrorCode.INVALID_STATUS_TRANSITION

    def test_cancel_through_update_is_rejected(self, order_service, customer, create_request) -> None:
        order = order_service.create_order(customer, create_request)

        with pytest.raises(OrderError) as exc_info:
            order_service.update_order(customer, order.id, OrderUpdate(status=OrderStatus.CANCELLED))

        assert exc_info.value.code == OrderErrorCode.INVALID_REQUEST_DATA

    def test_first_confirmation_stamps_and_notifies(
        self, order_service, outbox, customer, guide, create_request, clock
    ) -> None:
        order = order_service.create_order(customer, create_request)
        order = _advance(order_service, order, customer, OrderStatus.PENDING)
        clock.advance(hours=2)

        confirmed = order_service.update_order(guide, order.id, OrderUpdate(status=OrderStatus.CONFIRMED))

        assert confirmed.status == OrderStatus.CONFIRMED
        assert confirmed.confirmed_at == clock()
        assert confirmed.updated_at == clock()
        events = [m.event for m in outbox.messages(order.id)]
        assert events.count(NotificationEvent.ORDER_CONFIRMED) == 1

    def test_completion_stamps_completed_at(
        self, order_service, customer, admin, create_request, clock
    ) -> None:
        order = order_service.create_order(customer, create_request)
        order = _advance(
            order_service,
            order,
            admin,
            OrderStatus.PENDING,
            OrderStatus.CONFIRMED,
            OrderStatus.PAID,
            OrderStatus.IN_PROGRESS,
        )
        clock.advance(days=1)

        completed = order_service.update_order(admin, order.id, OrderUpdate(status=OrderStatus.COMPLETED))

        assert completed.completed_at == clock()

    def test_same_status_is_a_no_op(self, order_service, customer, create_request) -> None:
        order = order_service.create_order(customer, create_request)

        updated = order_service.update_order(customer, order.id, OrderUpdate(status=OrderStatus.DRAFT))

        assert updated.status == OrderStatus.DRAFT

    def test_notes_and_payment_status(
        self, order_service, customer, admin, create_request, clock
    ) -> None:
        order = order_service.create_order(customer, create_request)

        updated = order_service.update_order(
            admin,
            order.id,
            OrderUpdate(notes="Vegetarian lunch", payment_status=PaymentStatus.COMPLETED),
        )

        assert updated.notes == "Vegetarian lunch"
        assert updated.payment.status == PaymentStatus.COMPLETED
        assert updated.payment.paid_at == clock()
        assert updated.status == OrderStatus.DRAFT

    def test_customer_cannot_set_payment_status(self, order_service, customer, create_request) -> None:
        order = order_service.create_order(customer, create_request)

        with pytest.raises(OrderError) as exc_info:
            order_service.update_order(
                customer, order.id, OrderUpdate(payment_status=PaymentStatus.COMPLETED)
            )

        assert exc_info.value.code == OrderErrorCode.INSUFFICIENT_PERMISSIONS
        assert order_service.get_order(customer, order.id).payment.status == PaymentStatus.PENDING

    def test_customer_cannot_mark_paid_without_charge(
        self, order_service, customer, guide, create_request
    ) -> None:
        order = order_service.create_order(customer, create_request)
        order = _advance(order_service, order, customer, OrderStatus.PENDING)
        order = _advance(order_service, order, guide, OrderStatus.CONFIRMED)

        for caller in (customer, guide):
            with pytest.raises(OrderError) as exc_info:
                order_service.update_order(caller, order.id, OrderUpdate(status=OrderStatus.PAID))
            assert exc_info.value.code == OrderErrorCode.INSUFFICIENT_PERMISSIONS

        assert order_service.get_order(customer, order.id).status == OrderStatus.CONFIRMED

    def test_stranger_cannot_update(self, order_service, customer, stranger, create_request) -> None:
        order = order_service.create_order(customer, create_request)

        with pytest.raises(OrderError) as exc_info:
            order_service.update_order(stranger, order.id, OrderUpdate(notes="x"))

        assert exc_info.value.code == OrderErrorCode.INSUFFICIENT_PERMISSIONS

    def test_refund_completes_payment_refund(self, order_service, customer, admin, create_request) -> None:
        order = order_service.create_order(customer, create_request)
        order_service.cancel_order(
            customer, order.id, OrderCancel(reason=CancellationReason.USER_REQUEST)
        )

        refunded = order_service.update_order(admin, order.id, OrderUpdate(status=OrderStatus.REFUNDED))

        assert refunded.status == OrderStatus.REFUNDED
        assert refunded.cancellation is not None
        assert refunded.payment.status == PaymentStatus.REFUNDED
        assert refunded.payment.refund_amount == 1848


class TestCancelOrder:
    def test_stranger_cannot_cancel(self, order_service, customer, stranger, create_request) -> None:
        order = order_service.create_order(customer, create_request)

        with pytest.raises(OrderError) as exc_info:
            order_service.cancel_order(
                stranger, order.id, OrderCancel(reason=CancellationReason.USER_REQUEST)
            )

        assert exc_info.value.code == OrderErrorCode.INSUFFICIENT_PERMISSIONS
        unchanged = order_service.get_order(customer, order.id)
        assert unchanged.status == OrderStatus.DRAFT
        assert unchanged.cancellation is None

    def test_reason_is_required(self, order_service, customer, create_request) -> None:
        order = order_service.create_order(customer, create_request)

        with pytest.raises(OrderError) as exc_info:
            order_service.cancel_order(customer, order.id, OrderCancel())

        assert exc_info.value.code == OrderErrorCode.INVALID_REQUEST_DATA

    def test_full_refund_well_ahead_of_the_tour(
        self, order_service, outbox, customer, create_request, clock
    ) -> None:
        order = order_service.create_order(customer, create_request)

        cancelled = order_service.cancel_order(
            customer,
            order.id,
            OrderCancel(reason=CancellationReason.SCHEDULE_CONFLICT, description="Flight moved"),
        )

        assert cancelled.status == OrderStatus.CANCELLED
        assert cancelled.cancellation.reason == CancellationReason.SCHEDULE_CONFLICT
        assert cancelled.cancellation.description == "Flight moved"
        assert cancelled.cancellation.cancelled_by == CancelledBy.USER
        assert cancelled.cancellation.cancelled_at == clock()
        assert cancelled.cancellation.refund_policy.refund_percentage == 100
        assert cancelled.cancellation.refund_policy.refund_amount == 1848
        events = [m.event for m in outbox.messages(order.id)]
        assert events.count(NotificationEvent.ORDER_CANCELLED) == 2

    def test_partial_refund_uses_service_timezone(
        self, order_service, guide, customer, create_request, clock
    ) -> None:
        """Tour starts 2026-11-20 09:00 Taipei = 01:00 UTC; cancel 30h before."""
        order = order_service.create_order(customer, create_request)
        clock.set(dt.datetime(2026, 11, 18, 19, 0, tzinfo=dt.UTC))

        cancelled = order_service.cancel_order(
            guide, order.id, OrderCancel(reason=CancellationReason.GUIDE_UNAVAILABLE)
        )

        assert cancelled.cancellation.cancelled_by == CancelledBy.GUIDE
        assert cancelled.cancellation.refund_policy.refund_percentage == 50
        assert cancelled.cancellation.refund_policy.refund_amount == 924

    def test_no_refund_on_the_day(self, order_service, customer, create_request, clock) -> None:
        order = order_service.create_order(customer, create_request)
        clock.set(dt.datetime(2026, 11, 19, 20, 0, tzinfo=dt.UTC))

        cancelled = order_service.cancel_order(
            customer, order.id, OrderCancel(reason=CancellationReason.USER_REQUEST)
        )

        assert cancelled.cancellation.refund_policy.is_refundable is False
        assert cancelled.cancellation.refund_policy.refund_amount == 0

    def test_in_progress_orders_cannot_be_cancelled(
        self, order_service, customer, admin, create_request
    ) -> None:
        order = order_service.create_order(customer, create_request)
        _advance(
            order_service,
            order,
            admin,
            OrderStatus.PENDING,
            OrderStatus.CONFIRMED,
            OrderStatus.PAID,
            OrderStatus.IN_PROGRESS,
        )

        with pytest.raises(OrderError) as exc_info:
            order_service.cancel_order(
                customer, order.id, OrderCancel(reason=CancellationReason.USER_REQUEST)
            )

        assert exc_info.value.code == OrderErrorCode.CANCELLATION_NOT_ALLOWED

    def test_cannot_cancel_twice(self, order_service, customer, create_request) -> None:
        order = order_service.create_order(customer, create_request)
        cancel = OrderCancel(reason=CancellationReason.USER_REQUEST)
        order_service.cancel_order(customer, order.id, cancel)

        with pytest.raises(OrderError) as exc_info:
            order_service.cancel_order(customer, order.id, cancel)

        assert exc_info.value.code == OrderErrorCode.CANCELLATION_NOT_ALLOWED


class TestConfirmPayment:
    @pytest.fixture
    def confirmed_order(self, order_service, customer, guide, create_request):
        order = order_service.create_order(customer, create_request)
        order = _advance(order_service, order, customer, OrderStatus.PENDING)
        return _advance(order_service, order, guide, OrderStatus.CONFIRMED)

    def test_successful_payment(self, order_service, outbox, customer, confirmed_order, clock) -> None:
        paid = order_service.confirm_payment(
            customer, confirmed_order.id, PaymentMethod.CREDIT_CARD, "tok_visa"
        )

        assert paid.status == OrderStatus.PAID
        assert paid.payment.status == PaymentStatus.COMPLETED
        assert paid.payment.transaction_id.startswith("txn_")
        assert paid.payment.paid_at == clock()
        assert paid.payment.payment_details.card_last4 == "1234"
        events = [m.event for m in outbox.messages(paid.id)]
        assert events.count(NotificationEvent.PAYMENT_COMPLETED) == 2

    def test_declined_payment(self, order_service, customer, confirmed_order) -> None:
        with pytest.raises(OrderError) as exc_info:
            order_service.confirm_payment(
                customer, confirmed_order.id, PaymentMethod.LINE_PAY, "tok_decline_insufficient"
            )

        assert exc_info.value.code == OrderErrorCode.PAYMENT_FAILED
        order = order_service.get_order(customer, confirmed_order.id)
        assert order.status == OrderStatus.CONFIRMED
        assert order.payment.status == PaymentStatus.FAILED
        assert order.payment.method == PaymentMethod.LINE_PAY

    def test_unconfirmed_order_cannot_be_paid(self, order_service, customer, create_request) -> None:
        order = order_service.create_order(customer, create_request)

        with pytest.raises(OrderError) as exc_info:
            order_service.confirm_payment(customer, order.id, PaymentMethod.CREDIT_CARD, "tok_visa")

        assert exc_info.value.code == OrderErrorCode.INVALID_STATUS_TRANSITION

    def test_guide_cannot_pay(self, order_service, guide, confirmed_order) -> None:
        with pytest.raises(OrderError) as exc_info:
            order_service.confirm_payment(guide, confirmed_order.id, PaymentMethod.CREDIT_CARD, "tok")

        assert exc_info.value.code == OrderErrorCode.INSUFFICIENT_PERMISSIONS

    def test_payment_status_view(self, order_service, guide, customer, confirmed_order) -> None:
        order_service.confirm_payment(customer, confirmed_order.id, PaymentMethod.CREDIT_CARD, "tok")

        view = order_service.get_payment_status(guide, confirmed_order.id)

        assert view.payment_status == PaymentStatus.COMPLETED
        assert view.payment_method == PaymentMethod.CREDIT_CARD
        assert view.transaction_id is not None


class TestListOrders:
    def test_non_admin_sees_only_own_orders(
        self, order_service, customer, stranger, admin, create_request
    ) -> None:
        order_service.create_order(customer, create_request)
        order_service.create_order(stranger, create_request)

        mine = order_service.list_orders(customer, OrderListParams())
        everything = order_service.list_orders(admin, OrderListParams())

        assert mine.total == 1
        assert mine.orders[0].user_id == "user-001"
        assert everything.total == 2

    def test_guide_sees_orders_for_their_tours(
        self, order_service, customer, stranger, guide, create_request
    ) -> None:
        order_service.create_order(customer, create_request)
        order_service.create_order(stranger, create_request)

        assert order_service.list_orders(guide, OrderListParams()).total == 2

    def test_pagination(self, order_service, customer, create_request, clock) -> None:
        for _ in range(5):
            order_service.create_order(customer, create_request)
            clock.advance(minutes=1)

        page = order_service.list_orders(customer, OrderListParams(page=2, limit=2))

        assert page.total == 5
        assert page.total_pages == 3
        assert page.page == 2
        assert len(page.orders) == 2

    def test_page_past_the_end_is_empty(self, order_service, customer, create_request) -> None:
        order_service.create_order(customer, create_request)

        page = order_service.list_orders(customer, OrderListParams(page=3, limit=10))

        assert page.orders == []
        assert page.total == 1

    def test_status_filter(self, order_service, customer, create_request) -> None:
        first = order_service.create_order(customer, create_request)
        order_service.create_order(customer, create_request)
        order_service.update_order(customer, first.id, OrderUpdate(status=OrderStatus.PENDING))

        page = order_service.list_orders(customer, OrderListParams(statuses=[OrderStatus.PENDING]))

        assert [o.id for o in page.orders] == [first.id]


class TestStats:
    def test_admin_only(self, order_service, customer) -> None:
        with pytest.raises(OrderError) as exc_info:
            order_service.get_stats(customer)

        assert exc_info.value.code == OrderErrorCode.INSUFFICIENT_PERMISSIONS

    def test_counts(self, order_service, customer, admin, create_request) -> None:
        first = order_service.create_order(customer, create_request)
        order_service.create_order(customer, create_request)
        order_service.cancel_order(customer, first.id, OrderCancel(reason=CancellationReason.OTHER))

        stats = order_service.get_stats(admin)

        assert stats.total == 2
        assert stats.cancelled == 1
