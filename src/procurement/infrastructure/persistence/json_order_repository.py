"""JSON-file-backed implementation of OrderRepository.

Each stored order carries a ``version``.  ``save_order`` compares and
writes under a process-local lock, which makes the compare-and-set safe
for threads sharing one repository instance.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

from procurement.domain.exceptions import ConcurrentModification, EntityNotFoundError
from procurement.domain.model.order import Order, OrderLine, OrderStatus
from procurement.domain.model.reception import Reception
from procurement.domain.model.return_request import ReturnRequest, ReturnStatus
from procurement.domain.model.value_objects import Money
from procurement.domain.repository.order_repository import (
    NEW_ORDER_VERSION,
    OrderRepository,
)

logger = logging.getLogger(__name__)


class JsonOrderRepository(OrderRepository):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._lock = threading.Lock()
        self._ensure_file()

    # --- OrderRepository interface --------------------------------------------

    def next_id(self) -> int:
        with self._lock:
            orders = self._load_raw()
        if not orders:
            return 1
        return max(o["id"] for o in orders) + 1

    def load_order(self, order_id: int) -> tuple[Order, int]:
        with self._lock:
            orders = self._load_raw()
        for raw in orders:
            if raw["id"] == order_id:
                return self._to_domain(raw), raw["version"]
        raise EntityNotFoundError(f"Order #{order_id} not found")

    def save_order(self, order: Order, expected_version: int) -> int:
        with self._lock:
            orders = self._load_raw()
            if order.id is None:
                order.id = max((o["id"] for o in orders), default=0) + 1

            index = next((i for i, raw in enumerate(orders) if raw["id"] == order.id), None)
            current = orders[index]["version"] if index is not None else NEW_ORDER_VERSION
            if current != expected_version:
                logger.debug(
                    "Order #%s is at version %d, caller expected %d",
                    order.id,
                    current,
                    expected_version,
                )
                raise ConcurrentModification(order.id)

            raw = self._to_raw(order)
            raw["version"] = current + 1
            if index is None:
                orders.append(raw)
            else:
                orders[index] = raw
            self._persist_raw(orders)
            return raw["version"]

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict:
        return {
            "id": order.id,
            "reference": order.reference,
            "supplier_id": order.supplier_id,
            "settlement_currency": order.settlement_currency,
            "status": order.status.value,
            "note": order.note,
            "estimated_delivery": _iso(order.estimated_delivery),
            "created_at": order.created_at.isoformat(),
            "updated_at": order.updated_at.isoformat(),
            "closed_at": _iso(order.closed_at),
            "closed_partially": order.closed_partially,
            "total_ordered": _money_raw(order.total_ordered),
            "total_received": _money_raw(order.total_received),
            "lines": [
                {
                    "id": line.id,
                    "product_id": line.product_id,
                    "quantity_ordered": line.quantity_ordered,
                    "unit_price": _money_raw(line.unit_price),
                    "negotiated_unit_price": _money_raw(line.negotiated_unit_price),
                    "packaging": line.packaging,
                    "lot": line.lot,
                    "converted_amount": _money_raw(line.converted_amount),
                    "converted_received_amount": _money_raw(line.converted_received_amount),
                    "conversion_rate": str(line.conversion_rate),
                    "quantity_received": line.quantity_received,
                    "quantity_damaged": line.quantity_damaged,
                    "quantity_returned": line.quantity_returned,
                    "quantity_reserved": line.quantity_reserved,
                    "receptions": [
                        {
                            "quantity_received": r.quantity_received,
                            "quantity_damaged": r.quantity_damaged,
                            "received_on": r.received_on.isoformat(),
                            "comment": r.comment,
                        }
                        for r in line.receptions
                    ],
                    "return_requests": [
                        {
                            "id": r.id,
                            "reference": r.reference,
                            "line_id": r.line_id,
                            "quantity": r.quantity,
                            "motive": r.motive,
                            "requested_on": r.requested_on.isoformat(),
                            "status": r.status.value,
                            "comment": r.comment,
                            "decided_at": _iso(r.decided_at),
                            "processed_at": _iso(r.processed_at),
                        }
                        for r in line.return_requests
                    ],
                }
                for line in order.lines
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        lines = [
            OrderLine(
                id=l["id"],
                product_id=l["product_id"],
                quantity_ordered=l["quantity_ordered"],
                unit_price=_money(l["unit_price"]),
                negotiated_unit_price=_money(l.get("negotiated_unit_price")),
                packaging=l.get("packaging", ""),
                lot=l.get("lot", ""),
                converted_amount=_money(l.get("converted_amount")),
                converted_received_amount=_money(l.get("converted_received_amount")),
                conversion_rate=Decimal(l.get("conversion_rate", "1")),
                quantity_received=l["quantity_received"],
                quantity_damaged=l["quantity_damaged"],
                quantity_returned=l["quantity_returned"],
                quantity_reserved=l["quantity_reserved"],
                receptions=[
                    Reception(
                        quantity_received=r["quantity_received"],
                        quantity_damaged=r["quantity_damaged"],
                        received_on=date.fromisoformat(r["received_on"]),
                        comment=r.get("comment", ""),
                    )
                    for r in l.get("receptions", [])
                ],
                return_requests=[
                    ReturnRequest(
                        id=r["id"],
                        reference=r["reference"],
                        line_id=r["line_id"],
                        quantity=r["quantity"],
                        motive=r["motive"],
                        requested_on=date.fromisoformat(r["requested_on"]),
                        status=ReturnStatus(r["status"]),
                        comment=r.get("comment", ""),
                        decided_at=_datetime(r.get("decided_at")),
                        processed_at=_datetime(r.get("processed_at")),
                    )
                    for r in l.get("return_requests", [])
                ],
            )
            for l in raw["lines"]
        ]
        estimated = raw.get("estimated_delivery")
        return Order(
            id=raw["id"],
            reference=raw["reference"],
            supplier_id=raw["supplier_id"],
            settlement_currency=raw["settlement_currency"],
            lines=lines,
            status=OrderStatus(raw["status"]),
            note=raw.get("note", ""),
            estimated_delivery=date.fromisoformat(estimated) if estimated else None,
            created_at=datetime.fromisoformat(raw["created_at"]),
            updated_at=datetime.fromisoformat(raw["updated_at"]),
            closed_at=_datetime(raw.get("closed_at")),
            closed_partially=raw.get("closed_partially", False),
            total_ordered=_money(raw.get("total_ordered")),
            total_received=_money(raw.get("total_received")),
        )

    # --- File helpers ---------------------------------------------------------

    def _load_raw(self) -> list[dict]:
        return json.loads(self._file_path.read_text(encoding="utf-8"))

    def _persist_raw(self, orders: list[dict]) -> None:
        tmp_path = self._file_path.with_suffix(".tmp")
        tmp_path.write_text(json.dumps(orders, indent=2) + "\n", encoding="utf-8")
        tmp_path.replace(self._file_path)

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text("[]", encoding="utf-8")


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _money_raw(money: Money | None) -> dict | None:
    if money is None:
        return None
    return {"amount": str(money.amount), "currency": money.currency}


def _money(raw: dict | None) -> Money | None:
    if raw is None:
        return None
    return Money(Decimal(raw["amount"]), raw["currency"])
