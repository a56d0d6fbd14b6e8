"""Domain service: Order State Machine.

Owns the lifecycle of an Order.  ``apply_transition`` is the only code
path that changes ``Order.status``; it checks the transition table and
its precondition before touching anything, so a refused transition
leaves the order exactly as it was.

    DRAFT -> VALIDATED -> SENT -> AWAITING_RECEPTION -> RECEIVED -> CLOSED
    SENT -> RECEIVED                      (AWAITING_RECEPTION is optional)
    DRAFT | VALIDATED -> CANCELLED
"""

from __future__ import annotations

from datetime import datetime, timezone

from procurement.domain.exceptions import InvalidTransition
from procurement.domain.model.events import OrderTransitioned
from procurement.domain.model.order import Order, OrderStatus
from procurement.domain.service.order_line_ledger import OrderLineLedger

S = OrderStatus

TRANSITIONS: frozenset[tuple[OrderStatus, OrderStatus]] = frozenset(
    {
        (S.DRAFT, S.VALIDATED),
        (S.VALIDATED, S.SENT),
        (S.SENT, S.AWAITING_RECEPTION),
        (S.SENT, S.RECEIVED),
        (S.AWAITING_RECEPTION, S.RECEIVED),
        (S.RECEIVED, S.CLOSED),
        (S.DRAFT, S.CANCELLED),
        (S.VALIDATED, S.CANCELLED),
    }
)

RECEIVABLE_STATUSES = frozenset({S.SENT, S.AWAITING_RECEPTION, S.RECEIVED})


class OrderStateMachine:

    def __init__(self, ledger: OrderLineLedger) -> None:
        self._ledger = ledger

    def can_transition(
        self,
        order: Order,
        target: OrderStatus,
        *,
        allow_partial_close: bool = False,
    ) -> bool:
        try:
            self._check(order, target, allow_partial_close)
        except InvalidTransition:
            return False
        return True

    def apply_transition(
        self,
        order: Order,
        target: OrderStatus,
        *,
        allow_partial_close: bool = False,
    ) -> Order:
        """Move *order* to *target* or raise InvalidTransition."""
        self._check(order, target, allow_partial_close)

        previous = order.status
        if target == S.RECEIVED:
            self._ledger.recompute_totals(order)
        elif target == S.CLOSED:
            order.closed_at = datetime.now(timezone.utc)
            order.closed_partially = not self._all_reconciled(order)
        order.status = target
        order.record_event(
            OrderTransitioned(
                order_id=order.id,
                from_status=previous.value,
                to_status=target.value,
                partial_close=order.closed_partially if target == S.CLOSED else False,
            )
        )
        return order

    # --- Preconditions --------------------------------------------------------

    def _check(self, order: Order, target: OrderStatus, allow_partial_close: bool) -> None:
        if not isinstance(target, OrderStatus):
            raise InvalidTransition(order.status, target, "unknown status")
        if (order.status, target) not in TRANSITIONS:
            raise InvalidTransition(order.status, target)

        if target == S.VALIDATED:
            problems = self._line_problems(order)
            if problems:
                raise InvalidTransition(order.status, target, "; ".join(problems))
        elif target == S.RECEIVED:
            if not order.has_receptions:
                raise InvalidTransition(order.status, target, "no reception recorded")
        elif target == S.CLOSED:
            if not allow_partial_close and not self._all_reconciled(order):
                pending = [
                    str(line.id)
                    for line in order.lines
                    if not self._ledger.is_fully_reconciled(line)
                ]
                raise InvalidTransition(
                    order.status,
                    target,
                    f"lines not fully reconciled: {', '.join(pending)}",
                )
        elif target == S.CANCELLED:
            if order.has_receptions:
                raise InvalidTransition(order.status, target, "goods were already received")

    def _all_reconciled(self, order: Order) -> bool:
        return all(self._ledger.is_fully_reconciled(line) for line in order.lines)

    @staticmethod
    def _line_problems(order: Order) -> list[str]:
        problems: list[str] = []
        for line in order.lines:
            if not line.product_id or not str(line.product_id).strip():
                problems.append(f"line {line.id} has no product")
            if isinstance(line.quantity_ordered, bool) or not isinstance(
                line.quantity_ordered, int
            ) or line.quantity_ordered <= 0:
                problems.append(f"line {line.id} quantity must be positive")
            if line.unit_price.amount < 0 or (
                line.negotiated_unit_price is not None
                and line.negotiated_unit_price.amount < 0
            ):
                problems.append(f"line {line.id} price cannot be negative")
        return problems
