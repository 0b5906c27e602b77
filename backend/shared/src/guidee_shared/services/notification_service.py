"""Order notification rendering and delivery.

Templates are rendered per order event and audience, then delivered through
a single ``send_notification`` entry point that picks a sender by channel.
Delivery is best-effort: a failing sender is logged and reported as False,
never raised to the caller.

Customers are notified by email; guides by push to their user id.
"""

from collections.abc import Callable
from typing import Any, Protocol

import boto3

from guidee_shared.models import (
    CancellationReason,
    NotificationAudience,
    NotificationChannel,
    NotificationEvent,
    NotificationPayload,
    Order,
)
from guidee_shared.utils.logging import get_logger, log_notification

logger = get_logger(__name__)

TEMPLATES: dict[NotificationEvent, dict[NotificationAudience, tuple[str, str]]] = {
    NotificationEvent.ORDER_CREATED: {
        NotificationAudience.CUSTOMER: (
            "Booking received - Order #{orderNumber}",
            "Hi {customerName},\n\n"
            "Your booking has been created.\n\n"
            "Order number: {orderNumber}\n"
            "Service: {serviceName}\n"
            "Date: {bookingDate}\n"
            "Amount: NT$ {totalAmount}\n\n"
            "We'll be in touch shortly to confirm the details.\n\n"
            "The Guidee Team",
        ),
        NotificationAudience.GUIDE: (
            "New booking - Order #{orderNumber}",
            "Hi {guideName},\n\n"
            "You have a new booking request.\n\n"
            "Order number: {orderNumber}\n"
            "Service: {serviceName}\n"
            "Customer: {customerName}\n"
            "Date: {bookingDate}\n"
            "Participants: {participants}\n\n"
            "Please sign in to confirm or decline this booking.\n\n"
            "The Guidee Team",
        ),
    },
    NotificationEvent.ORDER_CONFIRMED: {
        NotificationAudience.CUSTOMER: (
            "Booking confirmed - Order #{orderNumber}",
            "Hi {customerName},\n\n"
            "Your guide has confirmed your booking!\n\n"
            "Order number: {orderNumber}\n"
            "Service: {serviceName}\n"
            "Guide: {guideName}\n"
            "Date: {bookingDate}\n"
            "Meeting point: {meetingPoint}\n\n"
            "Guide contact: {guideContact}\n\n"
            "The Guidee Team",
        ),
    },
    NotificationEvent.PAYMENT_COMPLETED: {
        NotificationAudience.CUSTOMER: (
            "Payment received - Order #{orderNumber}",
            "Hi {customerName},\n\n"
            "Your payment was successful.\n\n"
            "Order number: {orderNumber}\n"
            "Transaction: {transactionId}\n"
            "Amount paid: NT$ {totalAmount}\n\n"
            "Your booking is secured.\n\n"
            "The Guidee Team",
        ),
        NotificationAudience.GUIDE: (
            "Customer paid - Order #{orderNumber}",
            "Hi {guideName},\n\n"
            "The customer has completed payment.\n\n"
            "Order number: {orderNumber}\n"
            "Customer: {customerName}\n"
            "Tour date: {bookingDate}\n\n"
            "The Guidee Team",
        ),
    },
    NotificationEvent.ORDER_CANCELLED: {
        NotificationAudience.CUSTOMER: (
            "Booking cancelled - Order #{orderNumber}",
            "Hi {customerName},\n\n"
            "Your booking has been cancelled.\n\n"
            "Order number: {orderNumber}\n"
            "Reason: {cancellationReason}\n"
            "Refund amount: NT$ {refundAmount}\n\n"
            "Contact support if you have any questions.\n\n"
            "The Guidee Team",
        ),
        NotificationAudience.GUIDE: (
            "Booking cancelled - Order #{orderNumber}",
            "Hi {guideName},\n\n"
            "A booking has been cancelled.\n\n"
            "Order number: {orderNumber}\n"
            "Customer: {customerName}\n"
            "Reason: {cancellationReason}\n\n"
            "The Guidee Team",
        ),
    },
}

CANCELLATION_REASON_TEXT: dict[CancellationReason, str] = {
    CancellationReason.USER_REQUEST: "Cancelled at the customer's request",
    CancellationReason.GUIDE_UNAVAILABLE: "Guide unavailable",
    CancellationReason.WEATHER: "Weather conditions",
    CancellationReason.FORCE_MAJEURE: "Force majeure",
    CancellationReason.SCHEDULE_CONFLICT: "Schedule conflict",
    CancellationReason.HEALTH_SAFETY: "Health and safety concerns",
    CancellationReason.QUALITY_ISSUE: "Service quality issue",
    CancellationReason.OTHER: "Other reason",
}


def render_template(template: str, data: dict[str, Any]) -> str:
    """Substitute ``{key}`` placeholders. Unknown placeholders are left as-is."""
    result = template
    for key, value in data.items():
        result = result.replace(f"{{{key}}}", "" if value is None else str(value))
    return result


class ChannelSender(Protocol):
    """Delivers a payload over one channel. May raise on failure."""

    def send(self, payload: NotificationPayload) -> bool: ...


class LoggingSender:
    """Sender that only logs. Default for every channel outside production."""

    def __init__(self, channel: NotificationChannel) -> None:
        self.channel = channel

    def send(self, payload: NotificationPayload) -> bool:
        log_notification(
            logger,
            self.channel.value,
            payload.order_id,
            to=payload.to,
            subject=payload.subject,
            result="sent",
        )
        return True


class SESEmailSender:
    """Email delivery through Amazon SES."""

    def __init__(self, sender_email: str, client: Any | None = None) -> None:
        self.sender_email = sender_email
        self._client = client or boto3.client("ses")

    def send(self, payload: NotificationPayload) -> bool:
        response = self._client.send_email(
            Source=self.sender_email,
            Destination={"ToAddresses": [payload.to]},
            Message={
                "Subject": {"Data": payload.subject, "Charset": "UTF-8"},
                "Body": {"Text": {"Data": payload.message, "Charset": "UTF-8"}},
            },
        )
        log_notification(
            logger,
            NotificationChannel.EMAIL.value,
            payload.order_id,
            to=payload.to,
            result="sent",
            message_id=response.get("MessageId"),
        )
        return True


class SNSSmsSender:
    """SMS delivery through Amazon SNS."""

    def __init__(self, client: Any | None = None) -> None:
        self._client = client or boto3.client("sns")

    def send(self, payload: NotificationPayload) -> bool:
        self._client.publish(PhoneNumber=payload.to, Message=payload.message)
        log_notification(
            logger,
            NotificationChannel.SMS.value,
            payload.order_id,
            to=payload.to,
            result="sent",
        )
        return True


class NotificationService:
    """Renders order notifications and dispatches them by channel."""

    GUIDE_CONTACT_TEXT = "Your guide will contact you directly"

    def __init__(self, senders: dict[NotificationChannel, ChannelSender] | None = None) -> None:
        """Initialize the dispatcher.

        Args:
            senders: Sender per channel. Channels without an entry log only.
        """
        self.senders: dict[NotificationChannel, ChannelSender] = {
            channel: LoggingSender(channel) for channel in NotificationChannel
        }
        if senders:
            self.senders.update(senders)

    def _template_data(self, order: Order) -> dict[str, Any]:
        data: dict[str, Any] = {
            "orderNumber": order.order_number,
            "customerName": order.customer.name,
            "guideName": order.booking.guide_name,
            "serviceName": order.booking.service_name,
            "bookingDate": order.booking.date.isoformat(),
            "participants": order.booking.participants,
            "totalAmount": f"{order.pricing.total:,}",
            "meetingPoint": order.booking.location.name,
            "guideContact": self.GUIDE_CONTACT_TEXT,
            "transactionId": order.payment.transaction_id or "N/A",
        }
        if order.cancellation:
            data["cancellationReason"] = CANCELLATION_REASON_TEXT.get(
                order.cancellation.reason, order.cancellation.reason.value
            )
            data["refundAmount"] = f"{order.cancellation.refund_policy.refund_amount:,}"
        return data

    def render(self, event: NotificationEvent, order: Order) -> list[NotificationPayload]:
        """Render every template registered for an event.

        Cancellation notifications need the cancellation record; without one
        nothing is rendered.
        """
        if event == NotificationEvent.ORDER_CANCELLED and order.cancellation is None:
            return []

        data = self._template_data(order)
        payloads: list[NotificationPayload] = []

        for audience, (subject, message) in TEMPLATES[event].items():
            if audience == NotificationAudience.CUSTOMER:
                to, channel = order.customer.email, NotificationChannel.EMAIL
            else:
                to, channel = order.booking.guide_id, NotificationChannel.PUSH

            payloads.append(
                NotificationPayload(
                    to=to,
                    subject=render_template(subject, data),
                    message=render_template(message, data),
                    channel=channel,
                    order_id=order.id,
                    audience=audience,
                )
            )

        return payloads

    def send_notification(self, payload: NotificationPayload) -> bool:
        """Deliver one payload through the sender for its channel.

        Returns:
            True if delivered, False on any failure (never raises)
        """
        try:
            sender = self.senders.get(payload.channel)
            if sender is None:
                raise ValueError(f"Unsupported notification channel: {payload.channel}")
            return sender.send(payload)
        except Exception as e:
            log_notification(
                logger,
                payload.channel.value,
                payload.order_id,
                to=payload.to,
                result="failed",
                error=f"{type(e).__name__}: {e}",
            )
            return False

    def _send_all(self, event: NotificationEvent, order: Order) -> list[bool]:
        return [self.send_notification(payload) for payload in self.render(event, order)]

    def send_order_created_notifications(self, order: Order) -> list[bool]:
        return self._send_all(NotificationEvent.ORDER_CREATED, order)

    def send_order_confirmed_notifications(self, order: Order) -> list[bool]:
        return self._send_all(NotificationEvent.ORDER_CONFIRMED, order)

    def send_payment_completed_notifications(self, order: Order) -> list[bool]:
        return self._send_all(NotificationEvent.PAYMENT_COMPLETED, order)

    def send_order_cancelled_notifications(self, order: Order) -> list[bool]:
        return self._send_all(NotificationEvent.ORDER_CANCELLED, order)


def build_senders(
    email_backend: str,
    sms_backend: str,
    sender_email: str,
    client_factory: Callable[[str], Any] = boto3.client,
) -> dict[NotificationChannel, ChannelSender]:
    """Pick channel senders from configuration.

    Args:
        email_backend: ``log`` or ``ses``
        sms_backend: ``log`` or ``sns``
        sender_email: From-address for SES
        client_factory: boto3 client factory (injectable for tests)

    Returns:
        Senders for the configured non-logging backends
    """
    senders: dict[NotificationChannel, ChannelSender] = {}
    if email_backend == "ses":
        senders[NotificationChannel.EMAIL] = SESEmailSender(
            sender_email, client=client_factory("ses")
        )
    if sms_backend == "sns":
        senders[NotificationChannel.SMS] = SNSSmsSender(client=client_factory("sns"))
    return senders
