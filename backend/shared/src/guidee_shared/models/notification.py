"""Notification payloads and outbox entries."""

import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from .enums import NotificationChannel, NotificationEvent


class NotificationAudience(str, Enum):
    CUSTOMER = "customer"
    GUIDE = "guide"


class NotificationPayload(BaseModel):
    """A rendered message ready for a channel sender."""

    to: str = Field(..., description="Email address, phone number or user id")
    subject: str
    message: str
    channel: NotificationChannel
    order_id: str
    audience: NotificationAudience = NotificationAudience.CUSTOMER


class OutboxStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class OutboxMessage(BaseModel):
    """A notification intent recorded alongside an order mutation."""

    id: str
    event: NotificationEvent
    payload: NotificationPayload
    status: OutboxStatus = OutboxStatus.PENDING
    attempts: int = 0
    created_at: dt.datetime
    last_attempt_at: Optional[dt.datetime] = None
