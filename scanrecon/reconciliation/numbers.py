"""Numeric normalization, rounding, and tolerant comparison of amounts.

Unparseable values never raise; they become ``None`` and flow through
reconciliation as unknowns.
"""

import math
import re
import sys
from typing import Any

_GROUPING = re.compile(r"[, ]+")
_NON_NUMERIC = re.compile(r"[^0-9.\-]")

DEFAULT_TOLERANCE = 0.05

# Floats at or beyond this many cents have no fractional cents left to round.
_EXACT_CENTS_LIMIT = 2**53


def to_number(value: Any) -> float | None:
    """Parse a loosely formatted number.

    Grouping separators and any character other than digits, ``.`` and
    ``-`` are stripped before parsing, so ``"$1,234.50"`` becomes
    ``1234.5``.

    Args:
        value: A number, a numeric string, or anything else.

    Returns:
        The finite value as a float, or ``None`` (also for integers too
        large to convert).
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
        return number if math.isfinite(number) else None

    cleaned = _NON_NUMERIC.sub("", _GROUPING.sub("", str(value)))
    if not cleaned:
        return None
    try:
        number = float(cleaned)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def round2(value: float | None) -> float | None:
    """Round to cents, half away from zero.

    A machine-epsilon nudge keeps values such as ``1.005``, stored as
    ``1.00499999...``, rounding up.

    Args:
        value: Amount to round, or ``None``.

    Returns:
        The rounded amount, or ``None`` for ``None`` and non-finite input.
    """
    if value is None or not math.isfinite(value):
        return None
    if abs(value) * 100 >= _EXACT_CENTS_LIMIT:
        return float(value)
    sign = -1 if value < 0 else 1
    cents = math.floor((abs(value) + sys.float_info.epsilon) * 100 + 0.5)
    return sign * cents / 100 + 0.0


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward positive infinity."""
    return math.floor(value + 0.5)


def approx_equal(
    a: float | None, b: float | None, tolerance: float = DEFAULT_TOLERANCE
) -> bool:
    """Compare two amounts within an absolute tolerance; ``None`` never matches."""
    if a is None or b is None:
        return False
    return abs(a - b) <= tolerance
