"""Backend services for Guidee tour orders."""

from .dynamodb import DynamoDBOrderStorage
from .notification_service import NotificationService, build_senders
from .order_repository import InMemoryOrderStorage, OrderRepository, OrderStorage
from .order_service import OrderService
from .outbox import NotificationOutbox, OutboxWorker
from .payment_service import MockPaymentProcessor, PaymentProcessor
from .pricing import compute_pricing, round_half_up
from .refund_policy_service import RefundPolicyService
from .service_catalog import ServiceCatalog

__all__ = [
    "DynamoDBOrderStorage",
    "InMemoryOrderStorage",
    "MockPaymentProcessor",
    "NotificationOutbox",
    "NotificationService",
    "OrderRepository",
    "OrderService",
    "OrderStorage",
    "OutboxWorker",
    "PaymentProcessor",
    "RefundPolicyService",
    "ServiceCatalog",
    "build_senders",
    "compute_pricing",
    "round_half_up",
]
