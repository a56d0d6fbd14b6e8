"""Structured audit events emitted by the workflow.

Events are collected on the Order aggregate while an operation runs and
handed to the audit collaborator only after the order was committed.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from typing import Any


def _now() -> datetime:
    return datetime.now(timezone.utc)


class OrderEvent:
    """Mixin for the event dataclasses below."""

    @property
    def name(self) -> str:
        return type(self).__name__

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)  # type: ignore[call-overload]
        for key, value in data.items():
            if isinstance(value, (date, datetime)):
                data[key] = value.isoformat()
        return data


@dataclass(frozen=True)
class OrderTransitioned(OrderEvent):
    order_id: int | None
    from_status: str
    to_status: str
    partial_close: bool = False
    occurred_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class ReceptionRecorded(OrderEvent):
    order_id: int | None
    line_id: int
    quantity_received: int
    quantity_damaged: int
    received_on: date
    occurred_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class DamageCorrected(OrderEvent):
    order_id: int | None
    line_id: int
    previous_quantity: int
    new_quantity: int
    occurred_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class ReturnRequested(OrderEvent):
    order_id: int | None
    return_id: int
    line_id: int
    quantity: int
    motive: str
    occurred_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class ReturnDecided(OrderEvent):
    order_id: int | None
    return_id: int
    line_id: int
    decision: str
    occurred_at: datetime = field(default_factory=_now)
