"""Application service: Create Order use case.

Builds a DRAFT order from line specs.  Conversion rates for every line
currency are looked up by the caller and passed in; the settlement
currency implicitly converts at 1.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from procurement.application.dto import OrderLineSpec
from procurement.domain.model.order import Order, OrderLine
from procurement.domain.model.value_objects import Money, require_count
from procurement.domain.repository.order_repository import (
    NEW_ORDER_VERSION,
    OrderRepository,
)
from procurement.domain.service.currency_converter import rate_for, rate_table
from procurement.domain.service.order_line_ledger import OrderLineLedger


class CreateOrderHandler:

    def __init__(self, order_repo: OrderRepository, ledger: OrderLineLedger) -> None:
        self._order_repo = order_repo
        self._ledger = ledger

    def handle(
        self,
        supplier_id: str,
        line_specs: list[OrderLineSpec],
        settlement_currency: str,
        rates: dict[str, Decimal | str | int] | None = None,
        note: str = "",
        estimated_delivery: date | None = None,
    ) -> Order:
        settlement_currency = Money.zero(settlement_currency).currency
        known_rates = rate_table(rates, settlement_currency)

        lines: list[OrderLine] = []
        for number, spec in enumerate(line_specs, start=1):
            currency = (spec.currency or settlement_currency).upper()
            rate = rate_for(known_rates, currency, settlement_currency)
            negotiated = (
                Money.of(spec.negotiated_unit_price, currency)
                if spec.negotiated_unit_price is not None
                else None
            )
            line = OrderLine(
                id=number,
                product_id=str(spec.product_id or "").strip(),
                quantity_ordered=require_count("quantity", spec.quantity),
                unit_price=Money.of(spec.unit_price, currency),
                negotiated_unit_price=negotiated,
                packaging=spec.packaging,
                lot=spec.lot,
            )
            self._ledger.convert_line(line, settlement_currency, rate)
            lines.append(line)

        order = Order.create(
            supplier_id=supplier_id,
            lines=lines,
            settlement_currency=settlement_currency,
            note=note,
            estimated_delivery=estimated_delivery,
        )
        self._ledger.recompute_totals(order)

        order.id = self._order_repo.next_id()
        order.reference = f"PO-{order.created_at.year}-{order.id:05d}"
        self._order_repo.save_order(order, NEW_ORDER_VERSION)
        return order
