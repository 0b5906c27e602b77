"""FastAPI dependency injection providers for shared services.

This module provides factory functions for service instances using @lru_cache
so every request shares one instance of each service. Services are lazily
instantiated from get_settings().

Usage in routes:
    from guidee_api.dependencies import get_order_service

    @router.get("/orders/{order_id}")
    async def get_order(
        order_id: str,
        service: OrderService = Depends(get_order_service),
    ):
        ...

Service Dependency Graph:
    OrderStorage (memory or DynamoDB, per ORDER_STORAGE)
        └── OrderRepository
                └── OrderService
    ServiceCatalog ─────────────┘
    NotificationService
        ├── NotificationOutbox ─┘
        └── OutboxWorker
    MockPaymentProcessor ───────┘

Testing:
    Use reset_services() to clear cached instances between tests.
"""

from functools import lru_cache

from guidee_shared.config import get_settings
from guidee_shared.services.dynamodb import DynamoDBOrderStorage
from guidee_shared.services.notification_service import NotificationService, build_senders
from guidee_shared.services.order_repository import (
    InMemoryOrderStorage,
    OrderRepository,
    OrderStorage,
)
from guidee_shared.services.order_service import OrderService
from guidee_shared.services.outbox import NotificationOutbox, OutboxWorker
from guidee_shared.services.payment_service import MockPaymentProcessor, PaymentProcessor
from guidee_shared.services.refund_policy_service import RefundPolicyService
from guidee_shared.services.service_catalog import ServiceCatalog


@lru_cache
def get_order_storage() -> OrderStorage:
    """Get the cached storage backend selected by ORDER_STORAGE."""
    settings = get_settings()
    if settings.order_storage == "dynamodb":
        return DynamoDBOrderStorage(settings.dynamodb_table_prefix)
    return InMemoryOrderStorage()


@lru_cache
def get_order_repository() -> OrderRepository:
    return OrderRepository(storage=get_order_storage())


@lru_cache
def get_service_catalog() -> ServiceCatalog:
    """Get cached ServiceCatalog loaded from the bundled JSON."""
    return ServiceCatalog.from_json()


@lru_cache
def get_notification_service() -> NotificationService:
    """Get cached NotificationService with configured channel senders."""
    settings = get_settings()
    return NotificationService(
        senders=build_senders(
            settings.notification_email_backend,
            settings.notification_sms_backend,
            settings.notification_sender_email,
        )
    )


@lru_cache
def get_notification_outbox() -> NotificationOutbox:
    return NotificationOutbox(renderer=get_notification_service())


@lru_cache
def get_outbox_worker() -> OutboxWorker:
    """Get cached OutboxWorker draining the shared outbox."""
    return OutboxWorker(
        outbox=get_notification_outbox(),
        dispatcher=get_notification_service(),
        max_attempts=get_settings().notification_max_attempts,
    )


@lru_cache
def get_payment_processor() -> PaymentProcessor:
    return MockPaymentProcessor()


@lru_cache
def get_order_service() -> OrderService:
    """Get cached OrderService.

    Returns:
        OrderService configured with all required dependencies.
    """
    return OrderService(
        repository=get_order_repository(),
        catalog=get_service_catalog(),
        outbox=get_notification_outbox(),
        payments=get_payment_processor(),
        refund_policy=RefundPolicyService(),
        timezone=get_settings().service_timezone,
    )


def reset_services() -> None:
    """Clear all cached service instances and settings.

    Call this in test fixtures to ensure clean state between tests.

    Example:
        @pytest.fixture(autouse=True)
        def reset_state():
            yield
            reset_services()
    """
    get_order_storage.cache_clear()
    get_order_repository.cache_clear()
    get_service_catalog.cache_clear()
    get_notification_service.cache_clear()
    get_notification_outbox.cache_clear()
    get_outbox_worker.cache_clear()
    get_payment_processor.cache_clear()
    get_order_service.cache_clear()
    get_settings.cache_clear()
