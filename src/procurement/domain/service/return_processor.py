"""Domain service: Return Processor.

Files return requests against received goods and walks them through
PENDING -> APPROVED | REJECTED, then APPROVED -> PROCESSED.  Quantity
bookkeeping (reserve, release, commit) is delegated to the ledger.
"""

from __future__ import annotations

from datetime import date

from procurement.domain.exceptions import InvalidTransition, ValidationFailed
from procurement.domain.model.events import ReturnDecided, ReturnRequested
from procurement.domain.model.order import Order, OrderStatus
from procurement.domain.model.return_request import ReturnRequest, ReturnStatus
from procurement.domain.service.order_line_ledger import OrderLineLedger

RETURNABLE_STATUSES = frozenset({OrderStatus.RECEIVED, OrderStatus.CLOSED})
DECISIONS = frozenset({ReturnStatus.APPROVED, ReturnStatus.REJECTED})


class ReturnProcessor:

    def __init__(self, ledger: OrderLineLedger) -> None:
        self._ledger = ledger

    def request_return(
        self,
        order: Order,
        line_id: int,
        qty: int,
        motive: str,
        *,
        requested_on: date | None = None,
    ) -> ReturnRequest:
        self._require_returnable(order, ReturnStatus.PENDING)
        line = order.find_line(line_id)
        request = self._ledger.record_return(
            line,
            qty,
            motive,
            return_id=order.next_return_id(),
            requested_on=requested_on or date.today(),
        )
        order.record_event(
            ReturnRequested(
                order_id=order.id,
                return_id=request.id,
                line_id=line.id,
                quantity=request.quantity,
                motive=request.motive,
            )
        )
        return request

    def decide_return(
        self,
        order: Order,
        return_id: int,
        decision: ReturnStatus,
        comment: str | None = None,
    ) -> ReturnRequest:
        """Approve or reject a PENDING request."""
        if decision not in DECISIONS:
            raise ValidationFailed(
                "decision", f"must be APPROVED or REJECTED, got {getattr(decision, 'value', decision)}"
            )
        self._require_returnable(order, decision)
        line, request = order.find_return(return_id)
        if request.status != ReturnStatus.PENDING:
            raise InvalidTransition(request.status, decision, f"{request.reference} was already decided")
        self._ledger.settle_return(line, request, decision, comment)
        order.record_event(
            ReturnDecided(
                order_id=order.id,
                return_id=request.id,
                line_id=line.id,
                decision=decision.value,
            )
        )
        return request

    def process_return(self, order: Order, return_id: int) -> ReturnRequest:
        """Ship an APPROVED request back; the quantity becomes returned for good."""
        self._require_returnable(order, ReturnStatus.PROCESSED)
        line, request = order.find_return(return_id)
        if request.status != ReturnStatus.APPROVED:
            raise InvalidTransition(
                request.status, ReturnStatus.PROCESSED, f"{request.reference} is not approved"
            )
        self._ledger.settle_return(line, request, ReturnStatus.PROCESSED)
        order.record_event(
            ReturnDecided(
                order_id=order.id,
                return_id=request.id,
                line_id=line.id,
                decision=ReturnStatus.PROCESSED.value,
            )
        )
        return request

    @staticmethod
    def _require_returnable(order: Order, target: ReturnStatus) -> None:
        if order.status not in RETURNABLE_STATUSES:
            raise InvalidTransition(
                order.status,
                target,
                f"returns are only handled on RECEIVED or CLOSED orders, not {order.status.value}",
            )
