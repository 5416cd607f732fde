"""
Numeric guards and rounding shared by every calculator.

All rounding is half-up (297.5 -> 298, -2.5 -> -2), not round-half-to-even.
"""

import math
import numbers
from typing import Any, Union


def is_number(value: Any) -> bool:
    """Return True for a finite real number (booleans are rejected)."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return math.isfinite(value)


def is_positive_number(value: Any) -> bool:
    """Return True for a finite real number strictly greater than zero."""
    return is_number(value) and value > 0


def round_half_up(value: float, digits: int = 0) -> Union[int, float]:
    """
    Round to ``digits`` decimal places, ties rounded toward positive infinity.

    Args:
        value: Number to round
        digits: Decimal places to keep (0 returns an int)

    Returns:
        Rounded value
    """
    if digits == 0:
        return int(math.floor(value + 0.5))
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor
