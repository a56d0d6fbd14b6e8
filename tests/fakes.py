"""In-memory fakes for testing.

The repository implements the same abstract interface as the JSON
repository but keeps deep copies in a dict. No file I/O, no side effects.
"""

from __future__ import annotations

import copy
import threading
from typing import Callable

from procurement.domain.exceptions import ConcurrentModification, EntityNotFoundError
from procurement.domain.model.events import OrderEvent
from procurement.domain.model.order import Order
from procurement.domain.repository.order_repository import (
    NEW_ORDER_VERSION,
    OrderRepository,
)
from procurement.domain.service.audit_sink import AuditSink


class FakeOrderRepository(OrderRepository):

    def __init__(self, orders: list[Order] | None = None) -> None:
        self._store: dict[int, tuple[Order, int]] = {}
        self._lock = threading.Lock()
        self.save_calls = 0
        for order in orders or []:
            self.save_order(order, NEW_ORDER_VERSION)

    def next_id(self) -> int:
        return max(self._store, default=0) + 1

    def load_order(self, order_id: int) -> tuple[Order, int]:
        with self._lock:
            if order_id not in self._store:
                raise EntityNotFoundError(f"Order #{order_id} not found")
            order, version = self._store[order_id]
            return copy.deepcopy(order), version

    def save_order(self, order: Order, expected_version: int) -> int:
        with self._lock:
            self.save_calls += 1
            if order.id is None:
                order.id = self.next_id()
            _, current = self._store.get(order.id, (None, NEW_ORDER_VERSION))
            if current != expected_version:
                raise ConcurrentModification(order.id)
            self._store[order.id] = (copy.deepcopy(order), current + 1)
            return current + 1

    def version_of(self, order_id: int) -> int:
        return self._store[order_id][1]

    def stored(self, order_id: int) -> Order:
        return self._store[order_id][0]


class InterferingOrderRepository(FakeOrderRepository):
    """Runs ``interfere`` right after the next N loads, before the caller saves.

    Simulates another writer committing between our read and our write.
    """

    def __init__(self, orders: list[Order] | None = None) -> None:
        super().__init__(orders)
        self._interference: list[Callable[[], None]] = []

    def interfere_after_load(self, action: Callable[[], None], times: int = 1) -> None:
        self._interference.extend([action] * times)

    def load_order(self, order_id: int) -> tuple[Order, int]:
        loaded = super().load_order(order_id)
        if self._interference:
            action = self._interference.pop(0)
            action()
        return loaded

    def commit_elsewhere(self, order_id: int, change: Callable[[Order], None] | None = None) -> None:
        """Load and save the order as another writer would, bumping its version."""
        order, version = super().load_order(order_id)
        if change is not None:
            change(order)
        self.save_order(order, version)


class RecordingAuditSink(AuditSink):

    def __init__(self) -> None:
        self.events: list[OrderEvent] = []

    def publish(self, event: OrderEvent) -> None:
        self.events.append(event)

    @property
    def names(self) -> list[str]:
        return [e.name for e in self.events]


class FailingAuditSink(AuditSink):

    def publish(self, event: OrderEvent) -> None:
        raise RuntimeError("audit backend unavailable")
