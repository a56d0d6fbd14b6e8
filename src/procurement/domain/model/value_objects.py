"""Value Objects shared across the domain.

Value Objects are immutable and compared by value, not identity.
They encapsulate validation so invalid values can never exist.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from procurement.domain.exceptions import ValidationFailed

CENT = Decimal("0.01")


@dataclass(frozen=True)
class Money:
    """Monetary amount with an ISO currency code.

    Uses Decimal to avoid floating-point rounding errors that would be
    unacceptable in financial calculations.  Amounts are never negative.
    """

    amount: Decimal
    currency: str

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise ValidationFailed(
                "amount",
                f"must be a Decimal, got {type(self.amount).__name__}",
            )
        if self.amount < Decimal("0"):
            raise ValidationFailed("amount", f"cannot be negative, got {self.amount}")
        if not self.currency or len(self.currency) != 3 or not self.currency.isalpha():
            raise ValidationFailed("currency", f"not an ISO code: {self.currency!r}")
        if self.currency != self.currency.upper():
            object.__setattr__(self, "currency", self.currency.upper())

    # --- Arithmetic helpers ---------------------------------------------------

    def __add__(self, other: Money) -> Money:
        self._assert_same_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def __mul__(self, factor: int) -> Money:
        if not isinstance(factor, int):
            raise TypeError(f"Can only multiply Money by int, got {type(factor).__name__}")
        return Money(self.amount * factor, self.currency)

    def __lt__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount < other.amount

    def __le__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount <= other.amount

    def rounded(self) -> Money:
        return Money(self.amount.quantize(CENT, rounding=ROUND_HALF_UP), self.currency)

    # --- Display --------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.amount:.2f} {self.currency}"

    # --- Internal helpers -----------------------------------------------------

    def _assert_same_currency(self, other: Money) -> None:
        if self.currency != other.currency:
            raise ValidationFailed(
                "currency", f"cannot combine {self.currency} with {other.currency}"
            )

    # --- Factories ------------------------------------------------------------

    @staticmethod
    def of(amount: str | int | Decimal, currency: str) -> Money:
        """Convenient factory that coerces to Decimal safely."""
        try:
            return Money(Decimal(str(amount)), currency.upper())
        except (InvalidOperation, ValueError) as exc:
            raise ValidationFailed("amount", f"not a number: {amount!r}") from exc

    @staticmethod
    def zero(currency: str) -> Money:
        return Money(Decimal("0"), currency)


def to_rate(value: str | int | Decimal) -> Decimal:
    """Parse a conversion rate; rates must be strictly positive."""
    try:
        rate = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationFailed("rate", f"not a number: {value!r}") from exc
    if not rate.is_finite() or rate <= 0:
        raise ValidationFailed("rate", f"must be positive, got {value}")
    return rate


def require_count(field: str, value: object, *, positive: bool = False) -> int:
    """Validate an integer unit count (non-negative, or positive)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationFailed(field, f"must be an integer, got {type(value).__name__}")
    if positive and value <= 0:
        raise ValidationFailed(field, f"must be positive, got {value}")
    if value < 0:
        raise ValidationFailed(field, f"cannot be negative, got {value}")
    return value
