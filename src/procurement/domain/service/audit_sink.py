"""Audit port: where committed workflow events are sent."""

from __future__ import annotations

from abc import ABC, abstractmethod

from procurement.domain.model.events import OrderEvent


class AuditSink(ABC):

    @abstractmethod
    def publish(self, event: OrderEvent) -> None:
        """Deliver one event.  May raise; the engine does not depend on it."""
