from decimal import Decimal

import pytest

from stockledger.services.pricing import PricingError, line_total, order_total


def test_order_total_sums_quantity_times_price():
    lines = [(3, Decimal("7")), (2, Decimal("1.25"))]
    assert order_total(lines) == Decimal("23.50")


def test_order_total_of_nothing_is_zero():
    assert order_total([]) == Decimal("0.00")


def test_line_total_rounds_half_up_to_cents():
    assert line_total(1, Decimal("0.005")) == Decimal("0.01")
    assert line_total(3, Decimal("0.335")) == Decimal("1.01")


def test_float_prices_are_taken_at_face_value():
    assert line_total(3, 0.1) == Decimal("0.30")


@pytest.mark.parametrize("quantity, price", [(-1, Decimal("1")), (1, Decimal("-0.01"))])
def test_negative_inputs_are_rejected(quantity, price):
    with pytest.raises(PricingError):
        order_total([(quantity, price)])
