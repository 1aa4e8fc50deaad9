"""Fixed-point money helpers."""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Quantize to two decimal places, half-up.

    Floats go through ``str`` so 0.1 becomes Decimal("0.10") rather than its
    binary expansion.
    """
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value: Decimal, currency: str) -> str:
    """Human-readable amount, e.g. 'LKR 15,000.00'."""
    return f"{currency} {to_money(value):,.2f}"
