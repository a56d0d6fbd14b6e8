"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class OrderLineSpec:
    """Input: one line of a new order."""

    product_id: str
    quantity: int
    unit_price: str
    currency: str | None = None  # defaults to the settlement currency
    negotiated_unit_price: str | None = None
    packaging: str = ""
    lot: str = ""


@dataclass(frozen=True)
class ReceptionDTO:
    quantity_received: int
    quantity_damaged: int
    received_on: str
    comment: str


@dataclass(frozen=True)
class ReturnRequestDTO:
    id: int
    reference: str
    line_id: int
    quantity: int
    motive: str
    status: str
    requested_on: str
    comment: str


@dataclass(frozen=True)
class OrderLineDTO:
    """Output: a single line with its reconciliation figures."""

    id: int
    product_id: str
    quantity_ordered: int
    quantity_received: int
    quantity_damaged: int
    quantity_returned: int
    quantity_reserved: int
    returnable: int
    reception_status: str
    unit_price: str  # formatted, e.g. "5.00 EUR"
    line_total: str
    converted_amount: str
    damaged_amount: str
    returned_amount: str
    packaging: str
    lot: str
    receptions: list[ReceptionDTO]


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order as displayed to the user."""

    id: int
    reference: str
    supplier_id: str
    status: str
    settlement_currency: str
    note: str
    estimated_delivery: str
    lines: list[OrderLineDTO]
    return_requests: list[ReturnRequestDTO]
    total_ordered: str
    total_received: str
    created_at: str
    closed_partially: bool
