"""Reception record: what physically arrived for one order line."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class Reception:
    """One delivery event for a line.  Appended, never edited or deleted."""

    quantity_received: int
    quantity_damaged: int
    received_on: date
    comment: str = ""


@dataclass(frozen=True)
class LineReception:
    """Input: what arrived for one line in a delivery batch."""

    line_id: int
    quantity_received: int
    quantity_damaged: int = 0
    received_on: date | None = None
    comment: str = ""
