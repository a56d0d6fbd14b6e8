"""Workflow Engine: the facade external callers talk to.

Every mutating operation runs as one atomic unit against one order:

1. load the order and its version,
2. apply the domain operation to that in-memory copy,
3. commit with compare-and-set on the version.

A version conflict restarts from step 1, up to ``max_commit_attempts``
times, then surfaces ConcurrentModification.  Business rule violations
come back as ``Failure`` values and nothing is written.  Audit events
are published only after a commit, and a failing audit sink never fails
the operation.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Callable, TypeVar

from procurement.application.create_order import CreateOrderHandler
from procurement.application.dto import OrderLineSpec
from procurement.application.results import Failure, Result, Success
from procurement.domain.exceptions import BusinessRuleViolation, ConcurrentModification
from procurement.domain.model.events import OrderEvent
from procurement.domain.model.order import Order, OrderStatus
from procurement.domain.model.reception import LineReception
from procurement.domain.model.return_request import ReturnRequest, ReturnStatus
from procurement.domain.model.value_objects import require_count
from procurement.domain.repository.order_repository import OrderRepository
from procurement.domain.service.audit_sink import AuditSink
from procurement.domain.service.currency_converter import CurrencyConverter
from procurement.domain.service.order_line_ledger import OrderLineLedger
from procurement.domain.service.order_state_machine import OrderStateMachine
from procurement.domain.service.reception_processor import ReceptionProcessor
from procurement.domain.service.return_processor import ReturnProcessor

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_COMMIT_ATTEMPTS = 3


class WorkflowEngine:

    def __init__(
        self,
        order_repo: OrderRepository,
        audit_sink: AuditSink | None = None,
        *,
        tolerance: int = 0,
        max_commit_attempts: int = DEFAULT_MAX_COMMIT_ATTEMPTS,
        converter: CurrencyConverter | None = None,
    ) -> None:
        self._order_repo = order_repo
        self._audit_sink = audit_sink
        self._max_attempts = require_count("max_commit_attempts", max_commit_attempts, positive=True)
        self.ledger = OrderLineLedger(tolerance=tolerance, converter=converter)
        self.state_machine = OrderStateMachine(self.ledger)
        self.receptions = ReceptionProcessor(self.ledger, self.state_machine)
        self.returns = ReturnProcessor(self.ledger)

    # --- Queries --------------------------------------------------------------

    def get_order(self, order_id: int) -> Order:
        order, _ = self._order_repo.load_order(order_id)
        return order

    def can_transition(
        self,
        order_id: int,
        target: OrderStatus,
        *,
        allow_partial_close: bool = False,
    ) -> bool:
        order = self.get_order(order_id)
        return self.state_machine.can_transition(
            order, target, allow_partial_close=allow_partial_close
        )

    # --- Commands -------------------------------------------------------------

    def create_order(
        self,
        supplier_id: str,
        line_specs: list[OrderLineSpec],
        settlement_currency: str,
        *,
        rates: dict[str, Decimal | str | int] | None = None,
        note: str = "",
        estimated_delivery: date | None = None,
    ) -> Result[Order]:
        handler = CreateOrderHandler(self._order_repo, self.ledger)
        try:
            order = handler.handle(
                supplier_id,
                line_specs,
                settlement_currency,
                rates=rates,
                note=note,
                estimated_delivery=estimated_delivery,
            )
        except BusinessRuleViolation as exc:
            logger.info("Order creation refused: %s", exc.message)
            return Failure(exc)
        logger.info("Order #%s created as %s", order.id, order.reference)
        return Success(order, order)

    def apply_transition(
        self,
        order_id: int,
        target: OrderStatus,
        *,
        allow_partial_close: bool = False,
    ) -> Result[Order]:
        return self._execute(
            order_id,
            f"transition to {getattr(target, 'value', target)}",
            lambda order: self.state_machine.apply_transition(
                order, target, allow_partial_close=allow_partial_close
            ),
        )

    def receive(
        self,
        order_id: int,
        receptions: list[LineReception],
        *,
        rates: dict[str, Decimal | int | str] | None = None,
    ) -> Result[Order]:
        return self._execute(
            order_id,
            "reception",
            lambda order: self.receptions.receive(order, receptions, rates=rates),
        )

    def correct_damage(self, order_id: int, line_id: int, quantity_damaged: int) -> Result[Order]:
        return self._execute(
            order_id,
            "damage correction",
            lambda order: self.receptions.correct_damage(order, line_id, quantity_damaged),
        )

    def request_return(
        self,
        order_id: int,
        line_id: int,
        quantity: int,
        motive: str,
        *,
        requested_on: date | None = None,
    ) -> Result[ReturnRequest]:
        return self._execute(
            order_id,
            "return request",
            lambda order: self.returns.request_return(
                order, line_id, quantity, motive, requested_on=requested_on
            ),
        )

    def decide_return(
        self,
        order_id: int,
        return_id: int,
        decision: ReturnStatus,
        *,
        comment: str | None = None,
    ) -> Result[ReturnRequest]:
        return self._execute(
            order_id,
            f"return decision {getattr(decision, 'value', decision)}",
            lambda order: self.returns.decide_return(order, return_id, decision, comment),
        )

    def process_return(self, order_id: int, return_id: int) -> Result[ReturnRequest]:
        return self._execute(
            order_id,
            "return processing",
            lambda order: self.returns.process_return(order, return_id),
        )

    # --- Internal helpers -----------------------------------------------------

    def _execute(
        self,
        order_id: int,
        action: str,
        operation: Callable[[Order], T],
    ) -> Result[T]:
        for attempt in range(1, self._max_attempts + 1):
            order, version = self._order_repo.load_order(order_id)
            logger.debug(
                "%s on order #%s at version %d (attempt %d)", action, order_id, version, attempt
            )
            try:
                value = operation(order)
            except BusinessRuleViolation as exc:
                logger.info("%s refused on order #%s: %s", action, order_id, exc.message)
                return Failure(exc)

            events = order.pull_events()
            try:
                self._order_repo.save_order(order, version)
            except ConcurrentModification:
                logger.warning(
                    "Order #%s changed during %s (attempt %d of %d)",
                    order_id,
                    action,
                    attempt,
                    self._max_attempts,
                )
                continue

            logger.info("%s committed on order #%s", action, order_id)
            self._publish(events)
            return Success(value, order)

        return Failure(ConcurrentModification(order_id))

    def _publish(self, events: list[OrderEvent]) -> None:
        if self._audit_sink is None:
            return
        for event in events:
            try:
                self._audit_sink.publish(event)
            except Exception:
                logger.warning("Audit delivery failed for %s", event.name, exc_info=True)
