"""Notification outbox.

Order operations record notification intents here as part of the mutation
itself; a worker drains the outbox afterwards. The order write never waits on,
or rolls back because of, notification delivery.

Only pending messages stay in the queue. Settled messages move to bounded
histories: recently sent ones for inspection, failed ones as dead letters.
"""

import datetime as dt
import threading
import uuid
from collections import deque
from collections.abc import Callable

from guidee_shared.models import (
    NotificationEvent,
    NotificationPayload,
    Order,
    OutboxMessage,
    OutboxStatus,
)
from guidee_shared.utils.logging import get_logger

from .notification_service import NotificationService

logger = get_logger(__name__)

DEFAULT_SENT_HISTORY = 200
DEFAULT_DEAD_LETTER_LIMIT = 500


def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


class NotificationOutbox:
    """In-process queue of notification intents."""

    def __init__(
        self,
        renderer: NotificationService,
        clock: Callable[[], dt.datetime] = _utc_now,
        sent_history: int = DEFAULT_SENT_HISTORY,
        dead_letter_limit: int = DEFAULT_DEAD_LETTER_LIMIT,
    ) -> None:
        """Initialize the outbox.

        Args:
            renderer: Turns order events into payloads
            clock: Source of the current time
            sent_history: How many sent messages to keep for inspection
            dead_letter_limit: How many failed messages to keep
        """
        self.renderer = renderer
        self.clock = clock
        self._pending: list[OutboxMessage] = []
        self._sent: deque[OutboxMessage] = deque(maxlen=sent_history)
        self._dead_letters: deque[OutboxMessage] = deque(maxlen=dead_letter_limit)
        self._lock = threading.Lock()

    def enqueue(self, event: NotificationEvent, payload: NotificationPayload) -> OutboxMessage:
        message = OutboxMessage(
            id=f"ntf-{uuid.uuid4().hex[:12]}",
            event=event,
            payload=payload,
            created_at=self.clock(),
        )
        with self._lock:
            self._pending.append(message)
        return message

    def enqueue_order_event(self, event: NotificationEvent, order: Order) -> list[OutboxMessage]:
        """Render the event's templates for an order and queue every payload."""
        messages = [self.enqueue(event, payload) for payload in self.renderer.render(event, order)]
        logger.debug(
            "Queued %d notification(s) for %s on order %s", len(messages), event.value, order.id
        )
        return messages

    def pending(self) -> list[OutboxMessage]:
        with self._lock:
            return list(self._pending)

    def settle(self) -> None:
        """Move delivered and failed messages out of the pending queue."""
        with self._lock:
            still_pending = []
            for message in self._pending:
                if message.status == OutboxStatus.SENT:
                    self._sent.append(message)
                elif message.status == OutboxStatus.FAILED:
                    self._dead_letters.append(message)
                else:
                    still_pending.append(message)
            self._pending = still_pending

    def dead_letters(self) -> list[OutboxMessage]:
        with self._lock:
            return list(self._dead_letters)

    def messages(self, order_id: str | None = None) -> list[OutboxMessage]:
        """Pending plus retained settled messages, oldest first."""
        with self._lock:
            retained = [*self._sent, *self._dead_letters, *self._pending]
        retained.sort(key=lambda m: m.created_at)
        if order_id is None:
            return retained
        return [m for m in retained if m.payload.order_id == order_id]

    def clear(self) -> None:
        with self._lock:
            self._pending.clear()
            self._sent.clear()
            self._dead_letters.clear()


class OutboxWorker:
    """Drains pending outbox messages through the notification dispatcher.

    Each drain retries a failing message immediately up to ``max_attempts``
    total attempts, then marks it failed. There is no backoff.
    """

    def __init__(
        self,
        outbox: NotificationOutbox,
        dispatcher: NotificationService,
        max_attempts: int = 3,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.outbox = outbox
        self.dispatcher = dispatcher
        self.max_attempts = max_attempts
        self._drain_lock = threading.Lock()

    def _deliver(self, message: OutboxMessage) -> None:
        while message.attempts < self.max_attempts:
            message.attempts += 1
            message.last_attempt_at = self.outbox.clock()
            if self.dispatcher.send_notification(message.payload):
                message.status = OutboxStatus.SENT
                return
            logger.warning(
                "Notification %s attempt %d/%d failed",
                message.id,
                message.attempts,
                self.max_attempts,
            )

        message.status = OutboxStatus.FAILED
        logger.error(
            "Giving up on notification %s for order %s after %d attempts",
            message.id,
            message.payload.order_id,
            message.attempts,
        )

    def drain(self) -> dict[str, int]:
        """Send every pending message.

        Returns:
            Counts of messages marked ``sent`` and ``failed`` in this drain
        """
        counts = {"sent": 0, "failed": 0}
        with self._drain_lock:
            for message in self.outbox.pending():
                self._deliver(message)
                counts[message.status.value] += 1
            self.outbox.settle()

        if counts["sent"] or counts["failed"]:
            logger.info(
                "Outbox drained: sent=%d failed=%d", counts["sent"], counts["failed"]
            )
        return counts
