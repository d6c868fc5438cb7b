"""
Mathematical helpers for movement and sizing calculations.

All values are plain floats; percentages are expressed in percent
units (0.05 means 0.05%).
"""

import math
from typing import Final


# Epsilon for floating point comparisons
EPSILON: Final[float] = 1e-10


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """
    Safely divide two numbers, returning default on division by zero.

    Args:
        numerator: The dividend.
        denominator: The divisor.
        default: Value to return if denominator is zero.

    Returns:
        Result of division or default value.
    """
    if abs(denominator) < EPSILON:
        return default
    return numerator / denominator


def pct_change(old: float, new: float) -> float:
    """
    Percentage change from old to new.

    Example:
        >>> round(pct_change(100.0, 100.05), 6)
        0.05
    """
    return safe_divide(new - old, old) * 100.0


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp value into the closed interval [lower, upper]."""
    return max(lower, min(value, upper))


def sign(value: float) -> int:
    """Return -1, 0 or 1 according to the sign of value."""
    if value > 0:
        return 1
    if value < 0:
        return -1
    return 0


def round_down(value: float, decimals: int = 9) -> float:
    """
    Round a quantity down to a fixed number of decimals.

    Uses floor so a swept amount never exceeds the available balance.

    Example:
        >>> round_down(1.23456789, 4)
        1.2345
    """
    factor = 10**decimals
    return math.floor(value * factor) / factor
