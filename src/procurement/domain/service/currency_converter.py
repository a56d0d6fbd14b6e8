"""Currency conversion port.

Rate sourcing is somebody else's job: callers look the rate up before
invoking the workflow and pass it in, so conversion stays a pure
function of its inputs.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal

from procurement.domain.exceptions import ValidationFailed
from procurement.domain.model.value_objects import Money, to_rate


class CurrencyConverter(ABC):

    @abstractmethod
    def convert(self, amount: Money, to_currency: str, rate: Decimal) -> Money:
        """Express *amount* in *to_currency* using *rate* (units of target per source unit)."""


class RateConverter(CurrencyConverter):
    """Multiplies by the supplied rate and rounds to cents."""

    def convert(self, amount: Money, to_currency: str, rate: Decimal) -> Money:
        to_currency = to_currency.upper()
        if amount.currency == to_currency:
            return amount
        return Money(amount.amount * to_rate(rate), to_currency).rounded()


def rate_table(
    rates: dict[str, Decimal | str | int] | None, settlement_currency: str
) -> dict[str, Decimal]:
    """Normalise caller-supplied ``{currency: rate}``; the settlement currency converts at 1."""
    table = {code.upper(): to_rate(rate) for code, rate in (rates or {}).items()}
    table[settlement_currency.upper()] = Decimal("1")
    return table


def rate_for(table: dict[str, Decimal], currency: str, settlement_currency: str) -> Decimal:
    try:
        return table[currency.upper()]
    except KeyError:
        raise ValidationFailed(
            "rates", f"no conversion rate from {currency} to {settlement_currency}"
        ) from None
