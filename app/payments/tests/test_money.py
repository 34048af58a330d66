"""
Tests for minor/major unit conversion.
"""

from decimal import Decimal

import pytest

from payments.money import format_amount, to_major_units, to_minor_units


class TestToMinorUnits:
    @pytest.mark.parametrize(
        "amount, expected",
        [
            (Decimal("5000"), 500000),
            (Decimal("5000.50"), 500050),
            (5000, 500000),
            ("19.99", 1999),
            (19.99, 1999),
            (Decimal("0.005"), 1),
        ],
    )
    def test_converts(self, amount, expected):
        assert to_minor_units(amount) == expected

    @pytest.mark.parametrize("amount", ["abc", None, Decimal("NaN"), float("inf")])
    def test_rejects_non_numbers(self, amount):
        with pytest.raises(ValueError):
            to_minor_units(amount)


class TestToMajorUnits:
    def test_two_places(self):
        assert to_major_units(500000) == Decimal("5000.00")
        assert str(to_major_units(1999)) == "19.99"

    def test_flutterwave_round_trip(self):
        # 5000 NGN sent to Flutterwave comes back as 5000 and reads as 500000 kobo
        assert to_minor_units(to_major_units(500000)) == 500000


def test_format_amount():
    assert format_amount(500000) == "NGN 5,000.00"
    assert format_amount(1999, "usd") == "USD 19.99"
