"""Unit tests for domain value objects."""

from decimal import Decimal

import pytest

from cartsync.domain.exceptions import ValidationError
from cartsync.domain.model.value_objects import Money, coerce_amount, round_money


# ── Money ────────────────────────────────────────────────────────────────────


class TestMoney:

    def test_creation(self):
        m = Money(Decimal("10.50"))
        assert m.amount == Decimal("10.50")
        assert m.currency == "PKR"

    def test_of_factory_from_string(self):
        assert Money.of("25.99").amount == Decimal("25.99")

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError, match="cannot be negative"):
            Money(Decimal("-1"))

    def test_subtraction_going_negative_rejected(self):
        with pytest.raises(ValidationError, match="negative amount"):
            Money.of("5") - Money.of("10")

    def test_multiplication_by_int(self):
        assert Money.of("72.00") * 3 == Money.of("216.00")

    def test_currency_mismatch_rejected(self):
        with pytest.raises(ValidationError, match="Cannot combine"):
            Money(Decimal("10"), "PKR") + Money(Decimal("5"), "USD")

    def test_str_formatting(self):
        assert str(Money.of("1500")) == "Rs. 1,500.00"
        assert str(Money.of("9.5")) == "Rs. 9.50"

    def test_min_uses_ordering(self):
        assert min(Money.of("5"), Money.of("3")) == Money.of("3")


# ── Coercion and rounding ────────────────────────────────────────────────────


class TestCoerceAmount:

    @pytest.mark.parametrize(
        "raw", [None, "", "abc", "NaN", "-5", True, object(), "1e30", "1e12.5"]
    )
    def test_malformed_values_become_zero(self, raw):
        assert coerce_amount(raw) == Decimal("0")

    def test_numeric_strings_and_floats(self):
        assert coerce_amount("12.5") == Decimal("12.5")
        assert coerce_amount(3) == Decimal("3")
        assert coerce_amount(0.1) == Decimal("0.1")

    def test_upper_bound_is_inclusive(self):
        assert coerce_amount("1000000000000") == Decimal("1000000000000")
        assert coerce_amount("1000000000000.01") == Decimal("0")


class TestRoundMoney:

    def test_rounds_half_up(self):
        assert round_money(Decimal("2.345")) == Decimal("2.35")
        assert round_money(Decimal("2.344")) == Decimal("2.34")
