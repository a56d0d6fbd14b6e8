"""Domain-level exceptions.

Business rule violations are subclasses of BusinessRuleViolation.  They
carry structured context (line id, quantities, statuses) so callers can
render an actionable message without parsing strings.  The workflow
engine returns them as values; the domain services raise them.
"""

from __future__ import annotations

from typing import Any


class DomainException(Exception):
    """Base class for all domain errors."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist (order, line or return request)."""


class BusinessRuleViolation(DomainException):
    """An expected business error with a machine-readable payload."""

    kind = "BusinessRuleViolation"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def to_payload(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "context": {key: _plain(value) for key, value in self.context.items()},
        }


class InvalidTransition(BusinessRuleViolation):
    """An illegal state-machine move."""

    kind = "InvalidTransition"

    def __init__(self, from_status: Any, to_status: Any, reason: str | None = None) -> None:
        message = f"Cannot move from {_plain(from_status)} to {_plain(to_status)}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, from_status=from_status, to_status=to_status, reason=reason)
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason


class OverReceipt(BusinessRuleViolation):
    kind = "OverReceipt"

    def __init__(self, line: int, attempted: int, allowed: int) -> None:
        super().__init__(
            f"Line {line}: receiving would bring the total to {attempted}, "
            f"only {allowed} allowed",
            line=line,
            attempted=attempted,
            allowed=allowed,
        )
        self.line = line
        self.attempted = attempted
        self.allowed = allowed


class InsufficientReturnable(BusinessRuleViolation):
    kind = "InsufficientReturnable"

    def __init__(self, line: int, requested: int, available: int) -> None:
        super().__init__(
            f"Line {line}: cannot return {requested}, only {available} returnable",
            line=line,
            requested=requested,
            available=available,
        )
        self.line = line
        self.requested = requested
        self.available = available


class ConcurrentModification(BusinessRuleViolation):
    kind = "ConcurrentModification"

    def __init__(self, order_id: int) -> None:
        super().__init__(
            f"Order #{order_id} was modified concurrently", order_id=order_id
        )
        self.order_id = order_id


class ValidationFailed(BusinessRuleViolation):
    """Malformed input caught before any state mutation."""

    kind = "ValidationFailed"

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"Invalid {field}: {reason}", field=field, reason=reason)
        self.field = field
        self.reason = reason


def _plain(value: Any) -> Any:
    # Enums are rendered by value so payloads stay JSON-friendly.
    return getattr(value, "value", value)
