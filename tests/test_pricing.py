"""Tests for order pricing arithmetic."""

from decimal import Decimal, Inexact

import pytest

from app.models import PickupType
from app.schemas import OrderItem
from app.services.pricing import (
    ZERO,
    calculate_service_charge,
    calculate_subtotal,
    format_price,
    parse_extra_charges,
    price_order,
    round_money,
    to_decimal,
)


def _items():
    return [
        OrderItem(name="Margherita Pizza", unit_price=Decimal("12.99"), quantity=2),
        OrderItem(name="Caesar Salad", unit_price=Decimal("8.99"), quantity=1),
    ]


class TestToDecimal:
    def test_float_has_no_binary_noise(self):
        assert to_decimal(12.99) == Decimal("12.99")

    def test_int_and_string(self):
        assert to_decimal(3) == Decimal("3")
        assert to_decimal(" 4.50 ") == Decimal("4.50")

    @pytest.mark.parametrize("value", [True, None, "abc", "nan", float("inf"), [1]])
    def test_rejects_non_numbers(self, value):
        with pytest.raises(ValueError):
            to_decimal(value)


class TestParseExtraCharges:
    def test_absent_is_zero(self):
        assert parse_extra_charges(None) == ZERO

    def test_non_numeric_is_zero(self):
        assert parse_extra_charges("abc") == ZERO
        assert parse_extra_charges({"amount": 2}) == ZERO

    def test_numeric_string(self):
        assert parse_extra_charges("3.50") == Decimal("3.50")

    def test_negative_is_rejected(self):
        with pytest.raises(ValueError, match="positive number"):
            parse_extra_charges(-1)

    def test_above_cap_is_rejected(self):
        assert parse_extra_charges("1000000") == Decimal("1000000")
        with pytest.raises(ValueError, match="cannot exceed 1,000,000"):
            parse_extra_charges("1000000.01")


class TestPriceOrder:
    def test_dine_in_example(self):
        price = price_order(_items(), PickupType.DINE_IN, extra_charges=Decimal("2.00"))

        assert price.subtotal == Decimal("34.97")
        assert price.service_charge == Decimal("3.497")
        assert price.total == Decimal("40.467")

    def test_take_out_has_no_service_charge(self):
        price = price_order(_items(), PickupType.TAKE_OUT)

        assert price.service_charge == ZERO
        assert price.total == Decimal("34.97")

    def test_custom_rate(self):
        charge = calculate_service_charge(Decimal("100"), PickupType.DINE_IN, rate=Decimal("0.15"))
        assert charge == Decimal("15.00")

    def test_subtotal_of_nothing(self):
        assert calculate_subtotal([]) == ZERO

    def test_exact_beyond_default_precision(self):
        items = [OrderItem(name="A", unit_price=Decimal("999999.999999999999999999999999"), quantity=9999)]
        price = price_order(items, PickupType.DINE_IN)

        assert price.subtotal == Decimal("9998999999.999999999999999999990001")
        assert price.total == Decimal("10998899999.9999999999999999999890011")

    def test_inexact_result_raises(self):
        items = [OrderItem(name="A", unit_price=Decimal("1." + "0" * 120 + "1"), quantity=1)]
        with pytest.raises(Inexact):
            price_order(items, PickupType.TAKE_OUT)


class TestRounding:
    def test_half_up(self):
        assert round_money(Decimal("0.125")) == Decimal("0.13")
        assert round_money(Decimal("3.497")) == Decimal("3.50")

    def test_format_price(self):
        assert format_price(Decimal("40.467")) == "$40.47"
        assert format_price(Decimal("1234.5")) == "$1,234.50"
