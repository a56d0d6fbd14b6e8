"""ReturnRequest entity: goods sent back to the supplier for one line.

A request starts PENDING and reserves its quantity on the line.  It is
then APPROVED or REJECTED, and an approved request is finally PROCESSED,
at which point the reservation becomes a committed return.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum


class ReturnStatus(Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PROCESSED = "PROCESSED"


RETURN_TRANSITIONS: dict[ReturnStatus, frozenset[ReturnStatus]] = {
    ReturnStatus.PENDING: frozenset({ReturnStatus.APPROVED, ReturnStatus.REJECTED}),
    ReturnStatus.APPROVED: frozenset({ReturnStatus.PROCESSED}),
    ReturnStatus.REJECTED: frozenset(),
    ReturnStatus.PROCESSED: frozenset(),
}


@dataclass
class ReturnRequest:
    id: int
    reference: str
    line_id: int
    quantity: int
    motive: str
    requested_on: date
    status: ReturnStatus = ReturnStatus.PENDING
    comment: str = ""
    decided_at: datetime | None = None
    processed_at: datetime | None = None

    @property
    def is_final(self) -> bool:
        return not RETURN_TRANSITIONS[self.status]

    @staticmethod
    def reference_for(number: int) -> str:
        return f"RET-{number:03d}"
