"""Pytest configuration and fixtures for Guidee orders backend tests.

This module provides reusable fixtures for testing:
- AWS mocking with moto (DynamoDB, SES)
- A controllable clock and deterministic order numbers
- Service wiring (repository, catalog, outbox, order service)
- Callers, bearer tokens and an API test client
"""

import datetime as dt
import os
import random
from collections.abc import Callable
from typing import Any, Generator

import boto3
import pytest
from moto import mock_aws

# === Environment Setup ===

# Set environment variables for testing before imports
os.environ.setdefault("AWS_DEFAULT_REGION", "ap-northeast-1")
os.environ.setdefault("DYNAMODB_TABLE_PREFIX", "test-guidee")
os.environ["JWT_SECRET"] = "test-jwt-secret-for-guidee-orders-0123456789"
os.environ["ORDER_STORAGE"] = "memory"
os.environ["NOTIFICATION_EMAIL_BACKEND"] = "log"
os.environ["NOTIFICATION_SMS_BACKEND"] = "log"

if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

TEST_JWT_SECRET = os.environ["JWT_SECRET"]

# 2026-11-01 08:00 in Taipei
FIXED_NOW = dt.datetime(2026, 11, 1, 0, 0, tzinfo=dt.UTC)

# Tour on 2026-11-20 09:00 Taipei, far more than 48h after FIXED_NOW
TOUR_DATE = dt.date(2026, 11, 20)

SAMPLE_SERVICES: list[dict[str, Any]] = [
    {
        "id": "service-001",
        "name": "Taipei 101 & Xinyi District Walking Tour",
        "image": "https://example.com/taipei101.jpg",
        "basePrice": 800,
        "durationHours": 4,
        "guideId": "guide-001",
        "guideName": "Mei Chang",
        "location": {
            "name": "Taipei 101 Mall main entrance",
            "address": "No. 45, Shifu Rd, Xinyi District, Taipei City",
        },
        "isActive": True,
    },
    {
        "id": "service-002",
        "name": "Jiufen Old Street Evening Tour",
        "basePrice": 1200,
        "durationHours": 5,
        "guideId": "guide-002",
        "guideName": "Wei Lin",
        "location": {
            "name": "Jiufen Old Street entrance",
            "address": "Jishan St, Ruifang District, New Taipei City",
        },
        "isActive": True,
    },
    {
        "id": "service-retired",
        "name": "Retired Night Market Tour",
        "basePrice": 500,
        "durationHours": 2,
        "guideId": "guide-003",
        "guideName": "Hao Chen",
        "location": {"name": "Shilin Night Market", "address": "Shilin District"},
        "isActive": False,
    },
]


# === Service Singletons ===


@pytest.fixture(autouse=True)
def reset_service_singletons() -> Generator[None, None, None]:
    """Reset cached API services and settings before and after each test."""
    from guidee_api.dependencies import reset_services

    reset_services()
    yield
    reset_services()


# === AWS Fixtures ===


@pytest.fixture
def aws_credentials() -> None:
    """Mocked AWS Credentials for moto."""
    if not os.environ.get("AWS_PROFILE"):
        os.environ["AWS_ACCESS_KEY_ID"] = "testing"
        os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
        os.environ["AWS_SECURITY_TOKEN"] = "testing"
        os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "ap-northeast-1"


@pytest.fixture
def dynamodb_resource(aws_credentials: None) -> Generator[Any, None, None]:
    """Create a mocked DynamoDB resource."""
    with mock_aws():
        yield boto3.resource("dynamodb", region_name="ap-northeast-1")


@pytest.fixture
def ses_client(aws_credentials: None) -> Generator[Any, None, None]:
    """Create a mocked SES client with a verified sender."""
    with mock_aws():
        client = boto3.client("ses", region_name="ap-northeast-1")
        client.verify_email_identity(EmailAddress="no-reply@guidee.example")
        yield client


# === Clock ===


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: dt.datetime) -> None:
        self.now = now

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + dt.timedelta(**kwargs)

    def set(self, now: dt.datetime) -> None:
        self.now = now


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(FIXED_NOW)


# === Service Wiring ===


@pytest.fixture
def catalog():
    from guidee_shared.services.service_catalog import ServiceCatalog

    return ServiceCatalog.from_dicts(SAMPLE_SERVICES)


@pytest.fixture
def repository(clock: FixedClock):
    from guidee_shared.services.order_repository import InMemoryOrderStorage, OrderRepository

    return OrderRepository(InMemoryOrderStorage(), clock=clock)


@pytest.fixture
def notification_service():
    from guidee_shared.services.notification_service import NotificationService

    return NotificationService()


@pytest.fixture
def outbox(notification_service, clock: FixedClock):
    from guidee_shared.services.outbox import NotificationOutbox

    return NotificationOutbox(renderer=notification_service, clock=clock)


@pytest.fixture
def worker(outbox, notification_service):
    from guidee_shared.services.outbox import OutboxWorker

    return OutboxWorker(outbox=outbox, dispatcher=notification_service, max_attempts=3)


@pytest.fixture
def order_service(repository, catalog, outbox, clock: FixedClock):
    from guidee_shared.services.order_service import OrderService
    from guidee_shared.services.payment_service import MockPaymentProcessor

    return OrderService(
        repository=repository,
        catalog=catalog,
        outbox=outbox,
        payments=MockPaymentProcessor(),
        timezone="Asia/Taipei",
        clock=clock,
        rng=random.Random(42),
    )


# === Callers ===


@pytest.fixture
def customer():
    from guidee_shared.models import Caller

    return Caller(id="user-001", role="user")


@pytest.fixture
def guide():
    from guidee_shared.models import Caller

    return Caller(id="guide-001", role="guide")


@pytest.fixture
def admin():
    from guidee_shared.models import Caller

    return Caller(id="admin-001", role="admin")


@pytest.fixture
def stranger():
    from guidee_shared.models import Caller

    return Caller(id="user-999", role="user")


# === Sample Data ===


@pytest.fixture
def customer_info() -> dict[str, Any]:
    return {
        "name": "Ming Wang",
        "email": "wang@example.com",
        "phone": "0912345678",
    }


@pytest.fixture
def create_request(customer_info: dict[str, Any]):
    """Order request for two participants on service-001 (total NT$1,848)."""
    from guidee_shared.models.requests import OrderCreate

    return OrderCreate.model_validate(
        {
            "serviceId": "service-001",
            "date": TOUR_DATE.isoformat(),
            "startTime": "09:00",
            "participants": 2,
            "customer": customer_info,
        }
    )


@pytest.fixture
def make_order(clock: FixedClock) -> Callable[..., Any]:
    """Factory for Order instances with sensible defaults.

    Keyword overrides: order_id, order_number, user_id, guide_id, status,
    date, start_time, base_price, participants, created_at, cancellation.
    """
    from guidee_shared.models import (
        BookingInfo,
        CustomerInfo,
        Location,
        Order,
        OrderStatus,
        PaymentInfo,
    )
    from guidee_shared.services.pricing import compute_pricing

    counter = {"n": 0}

    def _make(**overrides: Any) -> Order:
        counter["n"] += 1
        n = counter["n"]
        participants = overrides.get("participants", 2)
        return Order(
            id=overrides.get("order_id", f"order-{n:03d}"),
            order_number=overrides.get("order_number", f"GD2611{n:04d}"),
            user_id=overrides.get("user_id", "user-001"),
            status=overrides.get("status", OrderStatus.DRAFT),
            booking=BookingInfo(
                service_id="service-001",
                service_name="Taipei 101 & Xinyi District Walking Tour",
                guide_id=overrides.get("guide_id", "guide-001"),
                guide_name="Mei Chang",
                date=overrides.get("date", TOUR_DATE),
                start_time=overrides.get("start_time", "09:00"),
                end_time="13:00",
                duration=4,
                participants=participants,
                location=Location(name="Taipei 101", address="Xinyi District"),
            ),
            customer=CustomerInfo(name="Ming Wang", email="wang@example.com"),
            pricing=compute_pricing(overrides.get("base_price", 800), participants),
            payment=PaymentInfo(),
            cancellation=overrides.get("cancellation"),
            created_at=overrides.get("created_at", clock() + dt.timedelta(minutes=n)),
            updated_at=overrides.get("created_at", clock() + dt.timedelta(minutes=n)),
        )

    return _make


# === Auth ===


def bearer_headers(user_id: str, role: str = "user", **kwargs: Any) -> dict[str, str]:
    """Authorization header for a freshly issued test token."""
    from guidee_shared.utils.tokens import issue_token

    token = issue_token(user_id, role, TEST_JWT_SECRET, **kwargs)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer_headers() -> dict[str, str]:
    return bearer_headers("user-001", "user")


@pytest.fixture
def guide_headers() -> dict[str, str]:
    return bearer_headers("guide-001", "guide")


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return bearer_headers("admin-001", "admin")


@pytest.fixture
def stranger_headers() -> dict[str, str]:
    return bearer_headers("user-999", "user")


# === API Client ===


@pytest.fixture
def api_client(order_service, worker) -> Generator[Any, None, None]:
    """TestClient with the order service wired to the test fixtures."""
    from fastapi.testclient import TestClient

    from guidee_api.dependencies import get_order_service, get_outbox_worker
    from guidee_api.main import app

    app.dependency_overrides[get_order_service] = lambda: order_service
    app.dependency_overrides[get_outbox_worker] = lambda: worker
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Callable[..., dict[str, str]]:
    """Factory for Authorization headers: ``auth_headers("user-001", "user")``."""
    return bearer_headers
