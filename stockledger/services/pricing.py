from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

CENTS = Decimal("0.01")


class PricingError(ValueError):
    pass


def _as_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps 0.1 as 0.1 instead of its binary expansion
    return Decimal(str(value))


def line_total(quantity: int, unit_price) -> Decimal:
    price = _as_decimal(unit_price)
    if quantity < 0:
        raise PricingError(f"quantity must be >= 0 (got {quantity})")
    if price < 0:
        raise PricingError(f"unit price must be >= 0 (got {price})")
    return (price * quantity).quantize(CENTS, rounding=ROUND_HALF_UP)


def order_total(lines: Iterable[tuple[int, Decimal]]) -> Decimal:
    """Σ quantity × unit_price over ``(quantity, unit_price)`` pairs, in cents."""
    total = Decimal("0.00")
    for quantity, unit_price in lines:
        total += line_total(quantity, unit_price)
    return total.quantize(CENTS, rounding=ROUND_HALF_UP)
