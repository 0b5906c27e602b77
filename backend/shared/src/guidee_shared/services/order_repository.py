"""Order repository over a pluggable storage backend.

The repository owns ordering, filtering and patch-merge semantics; storage
backends only put, get and scan whole orders. Writes are last-write-wins:
there is no locking and no version check.
"""

import datetime as dt
import logging
from collections.abc import Callable
from typing import Any, Protocol

from guidee_shared.models import (
    Order,
    OrderFilters,
    OrderSortField,
    OrderStats,
    OrderStatus,
    SortOrder,
)

logger = logging.getLogger(__name__)


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


class OrderStorage(Protocol):
    """Persistence backend for orders."""

    def put(self, order: Order) -> None: ...

    def get(self, order_id: str) -> Order | None: ...

    def scan(self) -> list[Order]: ...


class InMemoryOrderStorage:
    """Dict-backed storage. Hands out deep copies, never stored instances."""

    def __init__(self, orders: list[Order] | None = None) -> None:
        self._orders: dict[str, Order] = {}
        for order in orders or []:
            self.put(order)

    def put(self, order: Order) -> None:
        self._orders[order.id] = order.model_copy(deep=True)

    def get(self, order_id: str) -> Order | None:
        order = self._orders.get(order_id)
        return order.model_copy(deep=True) if order else None

    def scan(self) -> list[Order]:
        return [order.model_copy(deep=True) for order in self._orders.values()]

    def clear(self) -> None:
        self._orders.clear()


def _sort_key(field: OrderSortField) -> Callable[[Order], Any]:
    if field == OrderSortField.DATE:
        return lambda order: (order.booking.date, order.booking.start_time)
    if field == OrderSortField.TOTAL:
        return lambda order: order.pricing.total
    return lambda order: order.created_at


def _matches(order: Order, filters: OrderFilters) -> bool:
    if filters.participant_id and not order.is_participant(filters.participant_id):
        return False
    if filters.statuses and order.status not in filters.statuses:
        return False
    if filters.user_id and order.user_id != filters.user_id:
        return False
    if filters.guide_id and order.booking.guide_id != filters.guide_id:
        return False
    if filters.start_date and order.booking.date < filters.start_date:
        return False
    if filters.end_date and order.booking.date > filters.end_date:
        return False
    return True


class OrderRepository:
    """Order store with add/get/update/search operations."""

    def __init__(
        self,
        storage: OrderStorage,
        clock: Callable[[], dt.datetime] = utc_now,
    ) -> None:
        """Initialize the repository.

        Args:
            storage: Backend holding the orders
            clock: Source of the current time for updated_at
        """
        self.storage = storage
        self.clock = clock

    def add(self, order: Order) -> Order:
        self.storage.put(order)
        logger.debug("Stored order %s", order.id)
        return order

    def get_by_id(self, order_id: str) -> Order | None:
        return self.storage.get(order_id)

    def update(self, order_id: str, patch: dict[str, Any]) -> Order | None:
        """Merge a patch into a stored order.

        Patch values win over stored ones; ``updated_at`` is always rewritten.
        The merged order is re-validated, so a patch cannot break model
        invariants.

        Args:
            order_id: Order to update
            patch: Snake_case field names mapped to new values

        Returns:
            The updated order, or None if the id is unknown
        """
        current = self.storage.get(order_id)
        if current is None:
            return None

        data = dict(current)
        data.update(patch)
        data["id"] = current.id
        data["created_at"] = current.created_at
        data["updated_at"] = self.clock()

        updated = Order.model_validate(data)
        self.storage.put(updated)
        return updated

    def get_all(
        self,
        sort_by: OrderSortField = OrderSortField.CREATED_AT,
        sort_order: SortOrder = SortOrder.DESC,
    ) -> list[Order]:
        return self.search(OrderFilters(sort_by=sort_by, sort_order=sort_order))

    def search(self, filters: OrderFilters) -> list[Order]:
        """Return orders matching the filters, sorted as requested."""
        matching = [order for order in self.storage.scan() if _matches(order, filters)]
        return sorted(
            matching,
            key=_sort_key(filters.sort_by),
            reverse=filters.sort_order == SortOrder.DESC,
        )

    def exists_order_number(self, order_number: str) -> bool:
        return any(order.order_number == order_number for order in self.storage.scan())

    def get_stats(self) -> OrderStats:
        orders = self.storage.scan()

        def count(status: OrderStatus) -> int:
            return sum(1 for order in orders if order.status == status)

        return OrderStats(
            total=len(orders),
            pending=count(OrderStatus.PENDING),
            confirmed=count(OrderStatus.CONFIRMED),
            completed=count(OrderStatus.COMPLETED),
            cancelled=count(OrderStatus.CANCELLED),
        )
