"""
Minor/major currency unit conversion.

Amounts are stored and passed around internally as integers in minor
units (kobo for NGN). Conversion to major units happens only at the
boundaries that need it: the Flutterwave API and the public HTTP API.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

MINOR_UNITS_PER_MAJOR = 100

_CENT = Decimal("0.01")


def to_minor_units(amount) -> int:
    """
    Convert a major-unit amount to integer minor units.

    Accepts Decimal, int or numeric strings. Floats are routed through
    ``str`` so 19.99 becomes 1999 rather than 1998.

    Raises:
        ValueError: If the value is not a finite number
    """
    if isinstance(amount, float):
        amount = str(amount)
    try:
        value = Decimal(amount)
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"Invalid amount: {amount!r}") from e
    if not value.is_finite():
        raise ValueError(f"Invalid amount: {amount!r}")
    return int(
        (value * MINOR_UNITS_PER_MAJOR).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    )


def to_major_units(amount_minor: int) -> Decimal:
    """Convert integer minor units to a two-place Decimal."""
    return (Decimal(int(amount_minor)) / MINOR_UNITS_PER_MAJOR).quantize(_CENT)


def format_amount(amount_minor: int, currency: str = "NGN") -> str:
    """Human-readable amount, e.g. ``NGN 5,000.00``."""
    return f"{currency.upper()} {to_major_units(amount_minor):,.2f}"
