"""Lenient numeric helpers shared by the data model and the grade calculator.

Score entry is forgiving by contract: anything that is not a finite number
counts as zero instead of raising.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

_TWO_PLACES = Decimal("0.01")


def to_number(value: Any) -> float:
    """Coerce *value* to a finite float, returning 0.0 for anything unusable.

    Accepts ints, floats and numeric strings (surrounding whitespace allowed).
    ``None``, booleans, non-numeric strings, NaN and infinities all map to 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0.0
    else:
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def coerce_scores(value: Any) -> dict[str, float]:
    """Return a ``subject_id -> float`` mapping built from arbitrary input."""
    if not isinstance(value, dict):
        return {}
    return {str(key): to_number(score) for key, score in value.items()}


def round_percentage(value: float) -> float:
    """Round to two decimals, half-up on the exact binary value of *value*.

    ``Decimal(float)`` is exact, so 86.666… becomes 86.67 and a value whose
    binary form sits just below a ``.xx5`` boundary rounds down, the same way
    fixed-point formatting of the float would.
    """
    if not math.isfinite(value):
        return 0.0
    return float(Decimal(value).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))
