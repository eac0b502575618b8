"""
Numeric sanitization and rounding shared by the calculation core.

The core never rejects a number. Anything that is missing, NaN or not
convertible to float is replaced by a caller-supplied default, and every
reported value is rounded with decimal semantics so that binary summation
artifacts (0.1 + 0.2) never reach the caller.
"""

import logging
import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Mapping

logger = logging.getLogger(__name__)


def coerce_float(value: Any, default: float) -> float:
    """
    Convert a user-supplied value to float, substituting ``default`` when
    the value is None, NaN or cannot be converted.

    Infinities are kept; the formulas downstream handle them.
    """
    if value is None:
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        logger.debug(f"Non-numeric input {value!r} replaced with {default}")
        return default
    if math.isnan(result):
        return default
    return result


def non_negative(value: Any) -> float:
    """Missing, NaN and negative inputs all become 0.0."""
    return max(0.0, coerce_float(value, 0.0))


def species_value(values: Mapping, species: str) -> float:
    """Sanitized, non-negative entry of a concentration map (absent -> 0)."""
    if not values:
        return 0.0
    return non_negative(values.get(species))


def round_half_up(value: float, places: int) -> float:
    """
    Round the exact binary value of ``value`` to ``places`` decimals,
    ties away from zero.

    Non-finite values are returned unchanged.
    """
    if not math.isfinite(value):
        return value
    # floats this large are already integral
    if abs(value) >= 2.0 ** 52:
        return float(value)
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def clamp(value: float, low: float, high: float) -> float:
    """Clamp to [low, high]; NaN passes through."""
    if math.isnan(value):
        return value
    return min(high, max(low, value))
