"""Unit tests for domain value objects."""

from decimal import Decimal

import pytest

from procurement.domain.exceptions import ValidationFailed
from procurement.domain.model.value_objects import Money, require_count, to_rate


# ── Money ────────────────────────────────────────────────────────────────────


class TestMoney:

    def test_of_factory_from_string(self):
        m = Money.of("25.99", "eur")
        assert m.amount == Decimal("25.99")
        assert m.currency == "EUR"

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationFailed, match="cannot be negative"):
            Money(Decimal("-1"), "EUR")

    def test_not_a_number(self):
        with pytest.raises(ValidationFailed, match="not a number"):
            Money.of("ten", "EUR")

    def test_bad_currency_code(self):
        with pytest.raises(ValidationFailed, match="ISO code"):
            Money.of("1", "EURO")

    def test_addition(self):
        assert Money.of("10", "EUR") + Money.of("5.50", "EUR") == Money.of("15.50", "EUR")

    def test_mixed_currencies_refused(self):
        with pytest.raises(ValidationFailed, match="cannot combine"):
            Money.of("1", "EUR") + Money.of("1", "USD")

    def test_multiply_by_int_only(self):
        assert Money.of("2.50", "EUR") * 4 == Money.of("10", "EUR")
        with pytest.raises(TypeError):
            Money.of("2.50", "EUR") * 1.5

    def test_rounded_half_up(self):
        assert Money.of("1.005", "EUR").rounded() == Money.of("1.01", "EUR")

    def test_str(self):
        assert str(Money.of("5", "XOF")) == "5.00 XOF"


# ── Rates and counts ─────────────────────────────────────────────────────────


class TestToRate:

    def test_parses_string(self):
        assert to_rate("0.92") == Decimal("0.92")

    @pytest.mark.parametrize("value", ["0", "-1", "NaN", "abc"])
    def test_rejects(self, value):
        with pytest.raises(ValidationFailed):
            to_rate(value)


class TestRequireCount:

    def test_zero_allowed_by_default(self):
        assert require_count("qty", 0) == 0

    def test_positive(self):
        with pytest.raises(ValidationFailed, match="must be positive"):
            require_count("qty", 0, positive=True)

    def test_negative(self):
        with pytest.raises(ValidationFailed, match="cannot be negative"):
            require_count("qty", -3)

    @pytest.mark.parametrize("value", [1.0, "2", True])
    def test_integers_only(self, value):
        with pytest.raises(ValidationFailed, match="must be an integer"):
            require_count("qty", value)
