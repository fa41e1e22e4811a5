"""Currency arithmetic helpers.

Amounts are stored as floats (two decimal places) and every computed amount
passes through ``to_cents`` so that sums compare exactly.
"""

from decimal import ROUND_HALF_UP, Decimal


def to_cents(amount) -> float:
    """Round an amount half-up to two decimal places."""
    return float(Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def line_total(quantity: int, unit_price: float) -> float:
    return to_cents(Decimal(str(unit_price)) * quantity)


def sum_amounts(amounts) -> float:
    return to_cents(sum((Decimal(str(a)) for a in amounts), Decimal("0")))
