"""Unit tests for the Order aggregate and its lines."""

from datetime import date

import pytest

from procurement.domain.exceptions import EntityNotFoundError, ValidationFailed
from procurement.domain.model.events import OrderTransitioned
from procurement.domain.model.order import MAX_LINES, Order, OrderStatus
from procurement.domain.model.return_request import ReturnRequest
from procurement.domain.model.value_objects import Money
from tests.builders import make_line, make_order


class TestOrderCreate:

    def test_new_order_is_draft(self):
        order = Order.create(" SUP-1 ", [make_line()], "eur")
        assert order.status == OrderStatus.DRAFT
        assert order.supplier_id == "SUP-1"
        assert order.settlement_currency == "EUR"
        assert order.id is None

    def test_supplier_required(self):
        with pytest.raises(ValidationFailed, match="supplier_id"):
            Order.create("", [make_line()], "EUR")

    def test_needs_lines(self):
        with pytest.raises(ValidationFailed, match="at least one line"):
            Order.create("SUP-1", [], "EUR")

    def test_line_limit(self):
        lines = [make_line(line_id=i) for i in range(1, MAX_LINES + 2)]
        with pytest.raises(ValidationFailed, match=f"maximum {MAX_LINES}"):
            Order.create("SUP-1", lines, "EUR")

    def test_duplicate_line_ids(self):
        with pytest.raises(ValidationFailed, match="unique"):
            Order.create("SUP-1", [make_line(1), make_line(1)], "EUR")


class TestOrderLine:

    def test_negotiated_price_wins(self):
        line = make_line(qty=4, price="10.00")
        line.negotiated_unit_price = Money.of("8.00", "EUR")
        assert line.line_total == Money.of("32.00", "EUR")

    def test_returnable_quantity(self):
        line = make_line(qty=10)
        line.quantity_received = 9
        line.quantity_damaged = 1
        line.quantity_returned = 2
        line.quantity_reserved = 3
        assert line.returnable_quantity == 3
        assert line.received_amount == Money.of("45.00", "EUR")


class TestLookups:

    def test_find_line(self):
        order = make_order(make_line(1), make_line(2, product_id="P-2"))
        assert order.find_line(2).product_id == "P-2"

    def test_unknown_line(self):
        with pytest.raises(EntityNotFoundError, match="Line 7"):
            make_order().find_line(7)

    def test_returns_listed_in_id_order(self):
        first, second = make_line(1), make_line(2)
        second.return_requests.append(ReturnRequest(1, "RET-001", 2, 1, "x", date(2024, 1, 1)))
        first.return_requests.append(ReturnRequest(2, "RET-002", 1, 1, "y", date(2024, 1, 2)))
        order = make_order(first, second)

        assert [r.reference for r in order.return_requests] == ["RET-001", "RET-002"]
        assert order.next_return_id() == 3
        line, request = order.find_return(2)
        assert (line.id, request.motive) == (1, "y")

    def test_unknown_return(self):
        with pytest.raises(EntityNotFoundError, match="Return request 4"):
            make_order().find_return(4)


class TestEvents:

    def test_pull_events_drains(self):
        order = make_order()
        order.record_event(OrderTransitioned(1, OrderStatus.DRAFT, OrderStatus.VALIDATED))
        assert [e.name for e in order.pull_events()] == ["OrderTransitioned"]
        assert order.pull_events() == []
