"""Fixed-point money helpers.

Balances and amounts are ints counted in minor units of 1/10000.
Decimal is only used to read amount strings; nothing here touches float.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional

PRECISION = 4
SCALE = 10 ** PRECISION
MAX_WHOLE_DIGITS = 38


def parse_amount(text: str) -> int:
    """Parse a non-negative decimal string into minor units.

    Raises ValueError if the string is not a finite, non-negative number
    with at most PRECISION fractional digits.
    """
    try:
        value = Decimal(text.strip())
    except InvalidOperation:
        raise ValueError(f"invalid amount {text!r}")

    if not value.is_finite():
        raise ValueError(f"invalid amount {text!r}")
    if value < 0:
        raise ValueError(f"negative amount {text!r}")

    if value.adjusted() >= MAX_WHOLE_DIGITS:
        raise ValueError(f"amount {text!r} is too large")

    # Exact for any digit count; no context rounding
    _, digits, exponent = value.as_tuple()
    coefficient = int("".join(map(str, digits)))
    shift = exponent + PRECISION
    if shift >= 0:
        return coefficient * 10 ** shift

    if coefficient == 0:
        return 0
    divisor = 10 ** min(-shift, len(digits) + 1)
    if -shift > len(digits) or coefficient % divisor:
        raise ValueError(f"amount {text!r} has more than {PRECISION} decimal places")
    return coefficient // divisor


def format_amount(units: int) -> str:
    """Render minor units with fixed precision: 15000 -> '1.5000'."""
    sign = "-" if units < 0 else ""
    whole, fraction = divmod(abs(units), SCALE)
    return f"{sign}{whole}.{fraction:0{PRECISION}d}"


def checked_sub(minuend: int, subtrahend: int) -> Optional[int]:
    """Subtract, or return None if an operand is negative or the result would go below zero."""
    if minuend < 0 or subtrahend < 0 or subtrahend > minuend:
        return None
    return minuend - subtrahend
