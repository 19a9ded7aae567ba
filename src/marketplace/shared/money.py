"""Money arithmetic helpers.

Aggregates store amounts in Float fields; every calculation goes through
Decimal quantized to cents so that totals balance exactly.
"""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """Convert a float/str/int/Decimal amount to a cent-quantized Decimal."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_minor_units(amount: Decimal) -> int:
    """Convert a major-unit amount to integer cents for the payment gateway."""
    return int(to_money(amount) * 100)


def as_float(amount: Decimal) -> float:
    """Convert a Decimal amount for storage in a Float field."""
    return float(to_money(amount))
