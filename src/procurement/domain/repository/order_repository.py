"""Abstract repository for the Order aggregate.

Orders are versioned.  Saving is a compare-and-set: the caller passes the
version it loaded and the save only succeeds if nobody committed in
between.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from procurement.domain.model.order import Order

NEW_ORDER_VERSION = 0


class OrderRepository(ABC):

    @abstractmethod
    def next_id(self) -> int:
        """Generate the next unique order ID."""

    @abstractmethod
    def load_order(self, order_id: int) -> tuple[Order, int]:
        """Return an independent copy of the order and its current version.

        Raises EntityNotFoundError if the order does not exist.
        """

    @abstractmethod
    def save_order(self, order: Order, expected_version: int) -> int:
        """Persist *order* if its stored version is *expected_version*.

        Use ``NEW_ORDER_VERSION`` for orders that were never saved; the
        repository assigns their id.  Returns the new version, or raises
        ConcurrentModification.
        """
