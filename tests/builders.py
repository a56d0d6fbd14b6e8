"""Helpers to build orders in a given state for tests."""

from __future__ import annotations

from procurement.domain.model.order import Order, OrderLine, OrderStatus
from procurement.domain.model.value_objects import Money


def make_line(
    line_id: int = 1,
    qty: int = 10,
    price: str = "5.00",
    currency: str = "EUR",
    product_id: str = "P-1",
) -> OrderLine:
    return OrderLine(
        id=line_id,
        product_id=product_id,
        quantity_ordered=qty,
        unit_price=Money.of(price, currency),
        converted_amount=Money.of(price, currency) * qty if currency == "EUR" else None,
        converted_received_amount=Money.zero(currency) if currency == "EUR" else None,
    )


def make_order(
    *lines: OrderLine,
    status: OrderStatus = OrderStatus.DRAFT,
    order_id: int | None = 1,
) -> Order:
    order = Order.create("SUP-1", list(lines) or [make_line()], "EUR")
    order.id = order_id
    order.reference = f"PO-TEST-{order_id}"
    order.status = status
    return order
