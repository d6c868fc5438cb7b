"""Utility functions for the swap engine."""

from swapengine.utils.math import clamp, pct_change, round_down, safe_divide, sign
from swapengine.utils.time import (
    LatencyTimer,
    format_duration_us,
    get_timestamp,
    get_timestamp_us,
    utc_date,
)


__all__ = [
    "LatencyTimer",
    "clamp",
    "format_duration_us",
    "get_timestamp",
    "get_timestamp_us",
    "pct_change",
    "round_down",
    "safe_divide",
    "sign",
    "utc_date",
]
