"""Domain service: Reception Processor.

Applies a delivery batch to an order.  Like reservation of stock, the
batch is handled in two phases so it is all-or-nothing:

  Phase 1, validate: resolve every line and check the cumulative
            quantities of the whole batch against the ledger rules.
            Fails fast before any mutation.
  Phase 2, mutate: record each reception, recompute totals, and move
            the order to RECEIVED if it is not there yet.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from decimal import Decimal

from procurement.domain.exceptions import InvalidTransition, ValidationFailed
from procurement.domain.model.events import DamageCorrected, ReceptionRecorded
from procurement.domain.model.order import Order, OrderLine, OrderStatus
from procurement.domain.model.reception import LineReception, Reception
from procurement.domain.model.value_objects import require_count
from procurement.domain.service.currency_converter import rate_for, rate_table
from procurement.domain.service.order_line_ledger import OrderLineLedger
from procurement.domain.service.order_state_machine import (
    RECEIVABLE_STATUSES,
    OrderStateMachine,
)


class ReceptionProcessor:

    def __init__(self, ledger: OrderLineLedger, state_machine: OrderStateMachine) -> None:
        self._ledger = ledger
        self._state_machine = state_machine

    def receive(
        self,
        order: Order,
        receptions: list[LineReception],
        *,
        rates: dict[str, Decimal | int | str] | None = None,
        today: date | None = None,
    ) -> Order:
        """Record a delivery batch.

        *rates* maps each foreign line currency in the batch to its current
        rate into the settlement currency; lines already in the settlement
        currency convert at 1.
        """
        self._require_receivable(order, OrderStatus.RECEIVED)
        if not receptions:
            raise ValidationFailed("receptions", "at least one line reception is required")
        known_rates = rate_table(rates, order.settlement_currency)
        today = today or date.today()

        # Phase 1: validate the batch as a whole
        batch: dict[int, list[int]] = defaultdict(lambda: [0, 0])
        lines: dict[int, OrderLine] = {}
        line_rates: dict[int, Decimal] = {}
        for entry in receptions:
            line = order.find_line(entry.line_id)
            lines[line.id] = line
            line_rates[line.id] = rate_for(known_rates, line.currency, order.settlement_currency)
            require_count("quantity_received", entry.quantity_received)
            require_count("quantity_damaged", entry.quantity_damaged)
            if entry.quantity_received + entry.quantity_damaged == 0:
                raise ValidationFailed(
                    "quantity_received",
                    f"line {entry.line_id}: a reception needs at least one unit",
                )
            if entry.received_on is not None and not isinstance(entry.received_on, date):
                raise ValidationFailed("received_on", "must be a date")
            batch[line.id][0] += entry.quantity_received
            batch[line.id][1] += entry.quantity_damaged
        for line_id, (received, damaged) in batch.items():
            self._ledger.check_reception(lines[line_id], received, damaged)

        # Phase 2: mutate
        for entry in receptions:
            received_on = entry.received_on or today
            self._ledger.append_reception(
                lines[entry.line_id],
                Reception(
                    quantity_received=entry.quantity_received,
                    quantity_damaged=entry.quantity_damaged,
                    received_on=received_on,
                    comment=entry.comment or "",
                ),
                settlement_currency=order.settlement_currency,
                rate=line_rates[entry.line_id],
            )
            order.record_event(
                ReceptionRecorded(
                    order_id=order.id,
                    line_id=entry.line_id,
                    quantity_received=entry.quantity_received,
                    quantity_damaged=entry.quantity_damaged,
                    received_on=received_on,
                )
            )

        self._ledger.recompute_totals(order)
        if order.status != OrderStatus.RECEIVED:
            self._state_machine.apply_transition(order, OrderStatus.RECEIVED)
        return order

    def correct_damage(self, order: Order, line_id: int, quantity_damaged: int) -> Order:
        """Fix the damaged count of a line before any return is filed."""
        self._require_receivable(order, order.status)
        line = order.find_line(line_id)
        previous = self._ledger.correct_damage(line, quantity_damaged)
        self._ledger.recompute_totals(order)
        order.record_event(
            DamageCorrected(
                order_id=order.id,
                line_id=line.id,
                previous_quantity=previous,
                new_quantity=quantity_damaged,
            )
        )
        return order

    @staticmethod
    def _require_receivable(order: Order, target: OrderStatus) -> None:
        if order.status not in RECEIVABLE_STATUSES:
            raise InvalidTransition(
                order.status, target, f"order is not receivable in {order.status.value}"
            )
