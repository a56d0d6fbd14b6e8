"""Unit tests for the Order Line Ledger."""

from datetime import date
from decimal import Decimal

import pytest

from procurement.domain.exceptions import (
    InsufficientReturnable,
    InvalidTransition,
    OverReceipt,
    ValidationFailed,
)
from procurement.domain.model.order import LineReceptionStatus
from procurement.domain.model.return_request import ReturnStatus
from procurement.domain.model.value_objects import Money
from procurement.domain.service.order_line_ledger import OrderLineLedger
from tests.builders import make_line

DAY = date(2024, 3, 1)


def _receive(ledger, line, received, damaged=0):
    return ledger.record_reception(
        line, received, damaged, DAY, settlement_currency="EUR"
    )


def _received_line(ordered=12, received=10, damaged=2):
    line = make_line(qty=ordered)
    OrderLineLedger().record_reception(
        line, received, damaged, DAY, settlement_currency="EUR"
    )
    return line


class TestRecordReception:

    def test_adds_to_running_totals(self):
        ledger = OrderLineLedger()
        line = make_line(qty=10)
        _receive(ledger, line, 4, 1)
        _receive(ledger, line, 3)
        assert line.quantity_received == 7
        assert line.quantity_damaged == 1
        assert len(line.receptions) == 2
        assert line.latest_reception.quantity_received == 3

    def test_reception_keeps_date_and_comment(self):
        ledger = OrderLineLedger()
        line = make_line()
        reception = ledger.record_reception(
            line, 2, 0, DAY, "box dented", settlement_currency="EUR"
        )
        assert reception.received_on == DAY
        assert reception.comment == "box dented"

    def test_over_receipt_rejected_and_line_untouched(self):
        ledger = OrderLineLedger()
        line = make_line(qty=10)
        with pytest.raises(OverReceipt) as exc_info:
            _receive(ledger, line, 11)
        assert exc_info.value.attempted == 11
        assert exc_info.value.allowed == 10
        assert exc_info.value.line == line.id
        assert line.quantity_received == 0
        assert line.receptions == []

    def test_damaged_units_count_towards_the_cap(self):
        ledger = OrderLineLedger()
        line = make_line(qty=10)
        with pytest.raises(OverReceipt) as exc_info:
            _receive(ledger, line, 8, 3)
        assert exc_info.value.attempted == 11

    def test_cumulative_over_receipt_rejected(self):
        ledger = OrderLineLedger()
        line = make_line(qty=10)
        _receive(ledger, line, 9)
        with pytest.raises(OverReceipt):
            _receive(ledger, line, 2)
        assert line.quantity_received == 9

    def test_tolerance_allows_overage(self):
        ledger = OrderLineLedger(tolerance=2)
        line = make_line(qty=10)
        _receive(ledger, line, 12)
        assert line.quantity_received == 12
        with pytest.raises(OverReceipt):
            _receive(ledger, line, 1)

    def test_negative_quantity_rejected(self):
        with pytest.raises(ValidationFailed, match="quantity_received"):
            _receive(OrderLineLedger(), make_line(), -1)

    def test_empty_reception_rejected(self):
        with pytest.raises(ValidationFailed, match="at least one unit"):
            _receive(OrderLineLedger(), make_line(), 0, 0)

    def test_more_damaged_than_received_rejected(self):
        line = make_line(qty=10)
        with pytest.raises(ValidationFailed, match="quantity_damaged"):
            _receive(OrderLineLedger(), line, 1, 2)
        assert line.quantity_damaged == 0

    def test_received_on_must_be_a_date(self):
        with pytest.raises(ValidationFailed, match="received_on"):
            OrderLineLedger().record_reception(
                make_line(), 1, 0, "2024-03-01", settlement_currency="EUR"
            )


class TestConversion:

    def test_amounts_converted_at_supplied_rate(self):
        ledger = OrderLineLedger()
        line = make_line(qty=2, price="10.00", currency="USD")
        ledger.record_reception(
            line, 1, 0, DAY, settlement_currency="EUR", rate=Decimal("0.9")
        )
        assert line.converted_amount == Money.of("18.00", "EUR")
        assert line.converted_received_amount == Money.of("9.00", "EUR")
        assert line.conversion_rate == Decimal("0.9")

    def test_same_currency_is_not_converted(self):
        ledger = OrderLineLedger()
        line = make_line(qty=2, price="10.00")
        ledger.record_reception(line, 2, 0, DAY, settlement_currency="EUR", rate="3")
        assert line.converted_amount == Money.of("20.00", "EUR")
        assert line.conversion_rate == Decimal("1")

    def test_negotiated_price_wins(self):
        line = make_line(qty=4, price="10.00")
        line.negotiated_unit_price = Money.of("8.00", "EUR")
        assert line.line_total == Money.of("32.00", "EUR")

    def test_foreign_line_needs_a_rate(self):
        line = make_line(qty=2, price="10.00", currency="USD")
        with pytest.raises(ValidationFailed, match="no conversion rate from USD"):
            OrderLineLedger().record_reception(line, 1, 0, DAY, settlement_currency="EUR")
        assert line.quantity_received == 0
        assert line.receptions == []

    def test_invalid_rate_rejected(self):
        with pytest.raises(ValidationFailed, match="rate"):
            OrderLineLedger().record_reception(
                make_line(), 1, 0, DAY, settlement_currency="EUR", rate="0"
            )


class TestReconciliation:

    def test_partial_receipt_not_reconciled(self):
        ledger = OrderLineLedger()
        line = make_line(qty=10)
        _receive(ledger, line, 6, 1)
        assert not ledger.is_fully_reconciled(line)
        assert ledger.reception_status(line) == LineReceptionStatus.PARTIAL

    def test_received_plus_damaged_reconciles(self):
        ledger = OrderLineLedger()
        line = make_line(qty=10)
        _receive(ledger, line, 9, 1)
        assert ledger.is_fully_reconciled(line)
        assert ledger.reception_status(line) == LineReceptionStatus.DEFECTIVE

    def test_tolerance_lowers_the_bar(self):
        ledger = OrderLineLedger(tolerance=1)
        line = make_line(qty=10)
        _receive(ledger, line, 9)
        assert ledger.is_fully_reconciled(line)
        assert ledger.reception_status(line) == LineReceptionStatus.RECEIVED

    def test_nothing_received_is_pending(self):
        assert OrderLineLedger().reception_status(make_line()) == LineReceptionStatus.PENDING


class TestRecordReturn:

    def test_over_request_reports_available(self):
        line = _received_line(received=10, damaged=2)
        with pytest.raises(InsufficientReturnable) as exc_info:
            OrderLineLedger().record_return(
                line, 9, "wrong size", return_id=1, requested_on=DAY
            )
        assert exc_info.value.available == 8
        assert exc_info.value.requested == 9
        assert line.quantity_reserved == 0
        assert line.return_requests == []

    def test_request_reserves_quantity(self):
        line = _received_line(received=10, damaged=2)
        request = OrderLineLedger().record_return(
            line, 8, "wrong size", return_id=1, requested_on=DAY
        )
        assert request.status == ReturnStatus.PENDING
        assert request.reference == "RET-001"
        assert line.quantity_reserved == 8
        assert line.returnable_quantity == 0

    def test_reservations_count_against_availability(self):
        ledger = OrderLineLedger()
        line = _received_line(received=10, damaged=2)
        ledger.record_return(line, 5, "late", return_id=1, requested_on=DAY)
        with pytest.raises(InsufficientReturnable) as exc_info:
            ledger.record_return(line, 4, "late", return_id=2, requested_on=DAY)
        assert exc_info.value.available == 3

    def test_motive_required(self):
        line = _received_line()
        with pytest.raises(ValidationFailed, match="motive"):
            OrderLineLedger().record_return(line, 1, "  ", return_id=1, requested_on=DAY)

    def test_quantity_must_be_positive(self):
        line = _received_line()
        with pytest.raises(ValidationFailed, match="quantity"):
            OrderLineLedger().record_return(line, 0, "x", return_id=1, requested_on=DAY)


class TestSettleReturn:

    def _pending(self, qty=8):
        ledger = OrderLineLedger()
        line = _received_line(received=10, damaged=2)
        request = ledger.record_return(line, qty, "wrong size", return_id=1, requested_on=DAY)
        return ledger, line, request

    def test_approval_keeps_reservation(self):
        ledger, line, request = self._pending()
        ledger.settle_return(line, request, ReturnStatus.APPROVED)
        assert request.status == ReturnStatus.APPROVED
        assert line.quantity_reserved == 8
        assert request.decided_at is not None

    def test_rejection_releases_reservation(self):
        ledger, line, request = self._pending()
        ledger.settle_return(line, request, ReturnStatus.REJECTED, "not our fault")
        assert line.quantity_reserved == 0
        assert line.returnable_quantity == 8
        assert request.comment == "not our fault"

    def test_processing_commits_return(self):
        ledger, line, request = self._pending(qty=5)
        ledger.settle_return(line, request, ReturnStatus.APPROVED)
        ledger.settle_return(line, request, ReturnStatus.PROCESSED)
        assert line.quantity_returned == 5
        assert line.quantity_reserved == 0
        assert line.returnable_quantity == 3
        assert request.processed_at is not None

    def test_processed_is_final(self):
        ledger, line, request = self._pending()
        ledger.settle_return(line, request, ReturnStatus.APPROVED)
        ledger.settle_return(line, request, ReturnStatus.PROCESSED)
        with pytest.raises(InvalidTransition):
            ledger.settle_return(line, request, ReturnStatus.REJECTED)
        assert request.is_final

    def test_pending_cannot_be_processed_directly(self):
        ledger, line, request = self._pending()
        with pytest.raises(InvalidTransition):
            ledger.settle_return(line, request, ReturnStatus.PROCESSED)
        assert line.quantity_returned == 0


class TestCorrectDamage:

    def test_correction_overwrites_damage(self):
        ledger = OrderLineLedger()
        line = _received_line(ordered=12, received=10, damaged=2)
        previous = ledger.correct_damage(line, 1)
        assert previous == 2
        assert line.quantity_damaged == 1

    def test_correction_respects_cap(self):
        line = _received_line(ordered=12, received=10, damaged=2)
        with pytest.raises(OverReceipt):
            OrderLineLedger().correct_damage(line, 3)
        assert line.quantity_damaged == 2

    def test_correction_refused_after_return(self):
        ledger = OrderLineLedger()
        line = _received_line()
        ledger.record_return(line, 1, "x", return_id=1, requested_on=DAY)
        with pytest.raises(ValidationFailed, match="return was filed"):
            ledger.correct_damage(line, 0)

    def test_correction_needs_a_reception(self):
        with pytest.raises(ValidationFailed, match="nothing has been received"):
            OrderLineLedger().correct_damage(make_line(), 1)
