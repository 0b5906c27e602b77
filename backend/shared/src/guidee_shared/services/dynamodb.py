"""DynamoDB-backed order storage.

Orders are stored whole as a JSON ``payload`` attribute next to a handful of
top-level attributes (status, order number, customer and guide ids) that are
useful for ad-hoc queries and secondary indexes. Reading always goes through
the payload so the model stays the single source of truth.
"""

import logging
from typing import Any

import boto3
from botocore.exceptions import ClientError

from guidee_shared.models import Order

logger = logging.getLogger(__name__)


class DynamoDBOrderStorage:
    """Order storage on a single DynamoDB table keyed by ``order_id``."""

    TABLE = "orders"

    def __init__(self, table_prefix: str, resource: Any | None = None) -> None:
        """Initialize DynamoDB storage.

        Args:
            table_prefix: Environment prefix, e.g. ``guidee-dev``
            resource: Optional boto3 DynamoDB resource (created if omitted)
        """
        self.table_name = f"{table_prefix}-{self.TABLE}"
        self._dynamodb = resource or boto3.resource("dynamodb")
        self._table = self._dynamodb.Table(self.table_name)

    def create_table(self) -> None:
        """Create the orders table if it does not exist (local/dev use)."""
        try:
            self._dynamodb.create_table(
                TableName=self.table_name,
                KeySchema=[{"AttributeName": "order_id", "KeyType": "HASH"}],
                AttributeDefinitions=[
                    {"AttributeName": "order_id", "AttributeType": "S"},
                ],
                BillingMode="PAY_PER_REQUEST",
            )
            logger.info("Created DynamoDB table %s", self.table_name)
        except ClientError as e:
            if e.response["Error"]["Code"] != "ResourceInUseException":
                raise

    def _to_item(self, order: Order) -> dict[str, Any]:
        return {
            "order_id": order.id,
            "order_number": order.order_number,
            "user_id": order.user_id,
            "guide_id": order.booking.guide_id,
            "status": order.status.value,
            "created_at": order.created_at.isoformat(),
            "payload": order.model_dump_json(),
        }

    def _from_item(self, item: dict[str, Any]) -> Order:
        return Order.model_validate_json(item["payload"])

    def put(self, order: Order) -> None:
        self._table.put_item(Item=self._to_item(order))

    def get(self, order_id: str) -> Order | None:
        response = self._table.get_item(Key={"order_id": order_id})
        item: dict[str, Any] | None = response.get("Item")
        return self._from_item(item) if item else None

    def scan(self) -> list[Order]:
        """Scan the full table, following pagination."""
        items: list[dict[str, Any]] = []
        kwargs: dict[str, Any] = {}

        while True:
            response = self._table.scan(**kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            kwargs["ExclusiveStartKey"] = last_key

        return [self._from_item(item) for item in items]
