"""Domain service: Order Line Ledger.

Single computation authority for what was ordered, received, damaged,
reserved for return and returned on each line, and for the monetary
amounts derived from those quantities.

Quantity rules, with ``cap = quantity_ordered + tolerance``:

- ``quantity_received + quantity_damaged <= cap``
- ``quantity_returned + quantity_reserved <= quantity_received - quantity_damaged``
- a line is reconciled once ``quantity_received + quantity_damaged``
  reaches ``quantity_ordered - tolerance``

Every method validates first and mutates last, so a raised error always
leaves the line untouched.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

from procurement.domain.exceptions import (
    InsufficientReturnable,
    InvalidTransition,
    OverReceipt,
    ValidationFailed,
)
from procurement.domain.model.order import LineReceptionStatus, Order, OrderLine
from procurement.domain.model.reception import Reception
from procurement.domain.model.return_request import (
    RETURN_TRANSITIONS,
    ReturnRequest,
    ReturnStatus,
)
from procurement.domain.model.value_objects import Money, require_count, to_rate
from procurement.domain.service.currency_converter import (
    CurrencyConverter,
    RateConverter,
    rate_for,
    rate_table,
)


class OrderLineLedger:

    def __init__(
        self,
        tolerance: int = 0,
        converter: CurrencyConverter | None = None,
    ) -> None:
        self.tolerance = require_count("tolerance", tolerance)
        self._converter = converter or RateConverter()

    # --- Queries --------------------------------------------------------------

    def allowed_quantity(self, line: OrderLine) -> int:
        return line.quantity_ordered + self.tolerance

    def is_fully_reconciled(self, line: OrderLine) -> bool:
        accounted = line.quantity_received + line.quantity_damaged
        return accounted >= line.quantity_ordered - self.tolerance

    def reception_status(self, line: OrderLine) -> LineReceptionStatus:
        if not line.receptions:
            return LineReceptionStatus.PENDING
        if not self.is_fully_reconciled(line):
            return LineReceptionStatus.PARTIAL
        if line.quantity_damaged > 0:
            return LineReceptionStatus.DEFECTIVE
        return LineReceptionStatus.RECEIVED

    def check_reception(self, line: OrderLine, qty_received: int, qty_damaged: int) -> None:
        """Raise if adding these quantities to *line* would break an invariant."""
        require_count("quantity_received", qty_received)
        require_count("quantity_damaged", qty_damaged)
        if qty_received + qty_damaged == 0:
            raise ValidationFailed(
                "quantity_received", f"line {line.id}: a reception needs at least one unit"
            )
        self._check_totals(
            line,
            line.quantity_received + qty_received,
            line.quantity_damaged + qty_damaged,
        )

    # --- Receptions -----------------------------------------------------------

    def record_reception(
        self,
        line: OrderLine,
        qty_received: int,
        qty_damaged: int,
        received_on: date,
        comment: str = "",
        *,
        settlement_currency: str,
        rate: Decimal | int | str | None = None,
    ) -> Reception:
        """Add a delivery to the line's running totals.

        The line's settlement amounts are recomputed at *rate*, the rate
        current at reception time.  *rate* may be left out only when the
        line is already priced in the settlement currency.
        """
        if not isinstance(received_on, date):
            raise ValidationFailed("received_on", "must be a date")
        rate = rate_for(
            rate_table({line.currency: rate} if rate is not None else None, settlement_currency),
            line.currency,
            settlement_currency,
        )
        self.check_reception(line, qty_received, qty_damaged)
        reception = Reception(
            quantity_received=qty_received,
            quantity_damaged=qty_damaged,
            received_on=received_on,
            comment=comment or "",
        )
        self.append_reception(
            line, reception, settlement_currency=settlement_currency, rate=rate
        )
        return reception

    def append_reception(
        self,
        line: OrderLine,
        reception: Reception,
        *,
        settlement_currency: str,
        rate: Decimal,
    ) -> None:
        """Apply an already-checked reception (see ``check_reception``)."""
        line.quantity_received += reception.quantity_received
        line.quantity_damaged += reception.quantity_damaged
        line.receptions.append(reception)
        self.convert_line(line, settlement_currency, rate)

    def correct_damage(self, line: OrderLine, quantity_damaged: int) -> int:
        """Overwrite the damaged count; returns the previous value."""
        require_count("quantity_damaged", quantity_damaged)
        if line.return_requests:
            raise ValidationFailed(
                "quantity_damaged",
                f"line {line.id}: damage cannot be corrected once a return was filed",
            )
        if not line.receptions:
            raise ValidationFailed(
                "quantity_damaged", f"line {line.id}: nothing has been received yet"
            )
        self._check_totals(line, line.quantity_received, quantity_damaged)
        previous = line.quantity_damaged
        line.quantity_damaged = quantity_damaged
        return previous

    # --- Returns --------------------------------------------------------------

    def record_return(
        self,
        line: OrderLine,
        qty: int,
        motive: str,
        *,
        return_id: int,
        requested_on: date,
    ) -> ReturnRequest:
        """Check availability and reserve *qty* in one step."""
        require_count("quantity", qty, positive=True)
        if not motive or not motive.strip():
            raise ValidationFailed("motive", "is required")
        available = line.returnable_quantity
        if qty > available:
            raise InsufficientReturnable(line.id, qty, max(available, 0))

        request = ReturnRequest(
            id=return_id,
            reference=ReturnRequest.reference_for(return_id),
            line_id=line.id,
            quantity=qty,
            motive=motive.strip(),
            requested_on=requested_on,
        )
        line.quantity_reserved += qty
        line.return_requests.append(request)
        return request

    def settle_return(
        self,
        line: OrderLine,
        request: ReturnRequest,
        new_status: ReturnStatus,
        comment: str | None = None,
    ) -> ReturnRequest:
        """Move *request* to *new_status* and settle its reservation.

        REJECTED releases the reserved quantity, PROCESSED commits it into
        ``quantity_returned``; APPROVED keeps holding it.
        """
        if new_status not in RETURN_TRANSITIONS[request.status]:
            raise InvalidTransition(request.status, new_status)
        if request.quantity > line.quantity_reserved:
            # Reservation bookkeeping is out of step with the requests.
            raise ValidationFailed(
                "quantity_reserved",
                f"line {line.id}: {request.reference} holds {request.quantity} "
                f"but only {line.quantity_reserved} reserved",
            )

        now = datetime.now(timezone.utc)
        if new_status == ReturnStatus.REJECTED:
            line.quantity_reserved -= request.quantity
        elif new_status == ReturnStatus.PROCESSED:
            line.quantity_reserved -= request.quantity
            line.quantity_returned += request.quantity
            request.processed_at = now
        if new_status in (ReturnStatus.APPROVED, ReturnStatus.REJECTED):
            request.decided_at = now
        if comment:
            request.comment = comment
        request.status = new_status
        return request

    # --- Amounts --------------------------------------------------------------

    def convert_line(
        self, line: OrderLine, settlement_currency: str, rate: Decimal | int | str
    ) -> None:
        rate = to_rate(rate)
        line.conversion_rate = rate
        line.converted_amount = self._converter.convert(
            line.line_total, settlement_currency, rate
        )
        line.converted_received_amount = self._converter.convert(
            line.received_amount, settlement_currency, rate
        )

    def recompute_totals(self, order: Order) -> None:
        total_ordered = Money.zero(order.settlement_currency)
        total_received = Money.zero(order.settlement_currency)
        for line in order.lines:
            if line.converted_amount is None or line.converted_received_amount is None:
                self.convert_line(line, order.settlement_currency, line.conversion_rate)
            total_ordered = total_ordered + line.converted_amount
            total_received = total_received + line.converted_received_amount
        order.total_ordered = total_ordered
        order.total_received = total_received

    # --- Internal helpers -----------------------------------------------------

    def _check_totals(self, line: OrderLine, received: int, damaged: int) -> None:
        allowed = self.allowed_quantity(line)
        if received + damaged > allowed:
            raise OverReceipt(line.id, received + damaged, allowed)
        committed = line.quantity_returned + line.quantity_reserved
        if received - damaged < committed:
            raise ValidationFailed(
                "quantity_damaged",
                f"line {line.id}: {damaged} damaged leaves fewer than the "
                f"{committed} units already returned or reserved out of {received} received",
            )
