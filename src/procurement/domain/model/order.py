"""Order aggregate: a purchase order to one supplier.

The Order is an aggregate root that owns its lines; each line owns its
receptions and return requests.  Quantities and status are mutated only
by the domain services (state machine, ledger, processors), which check
every invariant before touching the aggregate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum

from procurement.domain.exceptions import EntityNotFoundError, ValidationFailed
from procurement.domain.model.events import OrderEvent
from procurement.domain.model.reception import Reception
from procurement.domain.model.return_request import ReturnRequest
from procurement.domain.model.value_objects import Money


class OrderStatus(Enum):
    DRAFT = "DRAFT"
    VALIDATED = "VALIDATED"
    SENT = "SENT"
    AWAITING_RECEPTION = "AWAITING_RECEPTION"
    RECEIVED = "RECEIVED"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"


class LineReceptionStatus(Enum):
    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    RECEIVED = "RECEIVED"
    DEFECTIVE = "DEFECTIVE"


# ---------------------------------------------------------------------------
# Constants for business rules
# ---------------------------------------------------------------------------
MAX_LINES = 200


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class OrderLine:
    """One product within an order.

    ``unit_price`` is expressed in the line's own currency.  The
    ``converted_*`` fields hold amounts in the order's settlement
    currency and are recomputed by the ledger.
    """

    id: int
    product_id: str
    quantity_ordered: int
    unit_price: Money
    negotiated_unit_price: Money | None = None
    packaging: str = ""
    lot: str = ""
    converted_amount: Money | None = None
    converted_received_amount: Money | None = None
    conversion_rate: Decimal = Decimal("1")
    quantity_received: int = 0
    quantity_damaged: int = 0
    quantity_returned: int = 0
    quantity_reserved: int = 0
    receptions: list[Reception] = field(default_factory=list)
    return_requests: list[ReturnRequest] = field(default_factory=list)

    @property
    def currency(self) -> str:
        return self.unit_price.currency

    @property
    def effective_unit_price(self) -> Money:
        return self.negotiated_unit_price or self.unit_price

    @property
    def line_total(self) -> Money:
        return self.effective_unit_price * self.quantity_ordered

    @property
    def received_amount(self) -> Money:
        return self.effective_unit_price * self.quantity_received

    @property
    def damaged_amount(self) -> Money:
        return self.effective_unit_price * self.quantity_damaged

    @property
    def returned_amount(self) -> Money:
        return self.effective_unit_price * self.quantity_returned

    @property
    def returnable_quantity(self) -> int:
        return (
            self.quantity_received
            - self.quantity_damaged
            - self.quantity_returned
            - self.quantity_reserved
        )

    @property
    def latest_reception(self) -> Reception | None:
        return self.receptions[-1] if self.receptions else None


@dataclass
class Order:
    """Aggregate root for purchase orders.

    Use the ``Order.create()`` factory for new orders.  The ``__init__``
    is intentionally simple so the repository can reconstitute persisted
    orders without re-validating.
    """

    id: int | None
    reference: str
    supplier_id: str
    settlement_currency: str
    lines: list[OrderLine]
    status: OrderStatus = OrderStatus.DRAFT
    note: str = ""
    estimated_delivery: date | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    closed_at: datetime | None = None
    closed_partially: bool = False
    total_ordered: Money | None = None
    total_received: Money | None = None
    _events: list[OrderEvent] = field(default_factory=list, repr=False, compare=False)

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        supplier_id: str,
        lines: list[OrderLine],
        settlement_currency: str,
        note: str = "",
        estimated_delivery: date | None = None,
    ) -> Order:
        if not supplier_id or not str(supplier_id).strip():
            raise ValidationFailed("supplier_id", "is required")
        if not lines:
            raise ValidationFailed("lines", "an order needs at least one line")
        if len(lines) > MAX_LINES:
            raise ValidationFailed("lines", f"maximum {MAX_LINES} lines per order")
        line_ids = [line.id for line in lines]
        if len(set(line_ids)) != len(line_ids):
            raise ValidationFailed("lines", "line ids must be unique")
        return Order(
            id=None,
            reference="",
            supplier_id=str(supplier_id).strip(),
            settlement_currency=settlement_currency.upper(),
            lines=list(lines),
            note=note,
            estimated_delivery=estimated_delivery,
        )

    # --- Lookups --------------------------------------------------------------

    def find_line(self, line_id: int) -> OrderLine:
        for line in self.lines:
            if line.id == line_id:
                return line
        raise EntityNotFoundError(f"Line {line_id} not found in order #{self.id}")

    def find_return(self, return_id: int) -> tuple[OrderLine, ReturnRequest]:
        for line in self.lines:
            for request in line.return_requests:
                if request.id == return_id:
                    return line, request
        raise EntityNotFoundError(
            f"Return request {return_id} not found in order #{self.id}"
        )

    @property
    def return_requests(self) -> list[ReturnRequest]:
        requests = [r for line in self.lines for r in line.return_requests]
        return sorted(requests, key=lambda r: r.id)

    @property
    def has_receptions(self) -> bool:
        return any(line.receptions for line in self.lines)

    def next_return_id(self) -> int:
        return max((r.id for r in self.return_requests), default=0) + 1

    # --- Events ---------------------------------------------------------------

    def record_event(self, event: OrderEvent) -> None:
        self._events.append(event)
        self.updated_at = _utcnow()

    def pull_events(self) -> list[OrderEvent]:
        events, self._events = self._events, []
        return events
