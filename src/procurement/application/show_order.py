"""Application service: Show Order use case (query)."""

from __future__ import annotations

from procurement.application.dto import (
    OrderDTO,
    OrderLineDTO,
    ReceptionDTO,
    ReturnRequestDTO,
)
from procurement.domain.model.order import Order
from procurement.domain.repository.order_repository import OrderRepository
from procurement.domain.service.order_line_ledger import OrderLineLedger


class ShowOrderHandler:

    def __init__(self, order_repo: OrderRepository, ledger: OrderLineLedger) -> None:
        self._order_repo = order_repo
        self._ledger = ledger

    def handle(self, order_id: int) -> OrderDTO:
        order, _ = self._order_repo.load_order(order_id)
        return to_dto(order, self._ledger)


def to_dto(order: Order, ledger: OrderLineLedger) -> OrderDTO:
    return OrderDTO(
        id=order.id,  # type: ignore[arg-type]
        reference=order.reference,
        supplier_id=order.supplier_id,
        status=order.status.value,
        settlement_currency=order.settlement_currency,
        note=order.note,
        estimated_delivery=(
            order.estimated_delivery.isoformat() if order.estimated_delivery else ""
        ),
        lines=[
            OrderLineDTO(
                id=line.id,
                product_id=line.product_id,
                quantity_ordered=line.quantity_ordered,
                quantity_received=line.quantity_received,
                quantity_damaged=line.quantity_damaged,
                quantity_returned=line.quantity_returned,
                quantity_reserved=line.quantity_reserved,
                returnable=line.returnable_quantity,
                reception_status=ledger.reception_status(line).value,
                unit_price=str(line.effective_unit_price),
                line_total=str(line.line_total),
                converted_amount=str(line.converted_amount or ""),
                damaged_amount=str(line.damaged_amount),
                returned_amount=str(line.returned_amount),
                packaging=line.packaging,
                lot=line.lot,
                receptions=[
                    ReceptionDTO(
                        quantity_received=r.quantity_received,
                        quantity_damaged=r.quantity_damaged,
                        received_on=r.received_on.isoformat(),
                        comment=r.comment,
                    )
                    for r in line.receptions
                ],
            )
            for line in order.lines
        ],
        return_requests=[
            ReturnRequestDTO(
                id=r.id,
                reference=r.reference,
                line_id=r.line_id,
                quantity=r.quantity,
                motive=r.motive,
                status=r.status.value,
                requested_on=r.requested_on.isoformat(),
                comment=r.comment,
            )
            for r in order.return_requests
        ],
        total_ordered=str(order.total_ordered or ""),
        total_received=str(order.total_received or ""),
        created_at=order.created_at.strftime("%Y-%m-%d %H:%M UTC"),
        closed_partially=order.closed_partially,
    )
