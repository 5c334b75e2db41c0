"""
Storefront Money Primitive — Decimal Amounts
=============================================
Order amounts are held as Decimal in major units with two places.
The payment gateway speaks integer minor units (kobo for NGN);
conversion happens only at that boundary, through this module.

RULES:
- No floats in arithmetic. Floats are accepted as input only and
  converted through their string form.
- Every stored amount is quantized to two places, ROUND_HALF_UP.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

TWO_PLACES = Decimal("0.01")
MINOR_UNITS_PER_MAJOR = 100
ZERO = Decimal("0.00")


def to_amount(value: Any, *, field_name: str = "amount") -> Decimal:
    """Coerce a number-like value into a two-place Decimal."""
    if isinstance(value, bool):
        raise ValueError(f"{field_name} must be a number.")
    try:
        if isinstance(value, float):
            value = str(value)
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValueError(f"{field_name} must be a number.") from exc
    if not amount.is_finite():
        raise ValueError(f"{field_name} must be a finite number.")
    return amount.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def percentage_of(amount: Decimal, rate: Decimal) -> Decimal:
    """rate is a percentage (7.5 means 7.5%)."""
    return (amount * rate / Decimal(100)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def to_minor_units(amount: Decimal) -> int:
    """Convert a major-unit amount to integer minor units (₦35.50 → 3550)."""
    minor = (to_amount(amount) * MINOR_UNITS_PER_MAJOR).to_integral_value(
        rounding=ROUND_HALF_UP
    )
    return int(minor)


def from_minor_units(minor: int) -> Decimal:
    if isinstance(minor, bool) or not isinstance(minor, int):
        raise ValueError("minor units must be an integer.")
    return (Decimal(minor) / MINOR_UNITS_PER_MAJOR).quantize(TWO_PLACES)
