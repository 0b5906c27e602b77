"""Unit tests for DynamoDBOrderStorage using moto."""

import pytest

from guidee_shared.models import OrderStatus
from guidee_shared.services.dynamodb import DynamoDBOrderStorage
from guidee_shared.services.order_repository import OrderRepository


@pytest.fixture
def storage(dynamodb_resource) -> DynamoDBOrderStorage:
    storage = DynamoDBOrderStorage("test-guidee", resource=dynamodb_resource)
    storage.create_table()
    return storage


class TestDynamoDBOrderStorage:
    """Tests for put/get/scan against a mocked table."""

    def test_table_name_uses_prefix(self, storage: DynamoDBOrderStorage) -> None:
        assert storage.table_name == "test-guidee-orders"

    def test_create_table_is_idempotent(self, storage: DynamoDBOrderStorage) -> None:
        storage.create_table()

    def test_put_then_get(self, storage: DynamoDBOrderStorage, make_order) -> None:
        order = make_order(order_id="order-ddb")

        storage.put(order)

        assert storage.get("order-ddb") == order

    def test_get_unknown_returns_none(self, storage: DynamoDBOrderStorage) -> None:
        assert storage.get("order-missing") is None

    def test_item_carries_query_attributes(
        self, storage: DynamoDBOrderStorage, dynamodb_resource, make_order
    ) -> None:
        storage.put(make_order(order_id="order-ddb", order_number="GD26110001"))

        item = dynamodb_resource.Table("test-guidee-orders").get_item(
            Key={"order_id": "order-ddb"}
        )["Item"]

        assert item["order_number"] == "GD26110001"
        assert item["user_id"] == "user-001"
        assert item["guide_id"] == "guide-001"
        assert item["status"] == "DRAFT"

    def test_scan_returns_every_order(self, storage: DynamoDBOrderStorage, make_order) -> None:
        for _ in range(3):
            storage.put(make_order())

        assert len(storage.scan()) == 3


def test_repository_updates_through_dynamodb(storage: DynamoDBOrderStorage, make_order, clock) -> None:
    repository = OrderRepository(storage, clock=clock)
    repository.add(make_order(order_id="order-ddb"))

    repository.update("order-ddb", {"status": OrderStatus.PENDING})

    assert storage.get("order-ddb").status == OrderStatus.PENDING
    assert repository.get_stats().pending == 1
