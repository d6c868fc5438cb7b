"""
Time utilities.

Wall-clock seconds drive the trading timers and retention windows;
microsecond timestamps are used for latency measurement.
"""

import time
from datetime import UTC, date, datetime


def get_timestamp() -> float:
    """
    Get current Unix time in seconds.

    Returns:
        Current Unix timestamp as a float.
    """
    return time.time()


def get_timestamp_us() -> int:
    """
    Get current timestamp in microseconds.

    Returns:
        Current Unix timestamp in microseconds.
    """
    return time.time_ns() // 1000


def utc_date(timestamp: float) -> date:
    """
    Get the UTC calendar date of a timestamp.

    Args:
        timestamp: Unix timestamp in seconds.

    Returns:
        UTC date used for daily profit rollover.
    """
    return datetime.fromtimestamp(timestamp, tz=UTC).date()


class LatencyTimer:
    """
    Context manager for measuring operation latency.

    Example:
        >>> with LatencyTimer() as timer:
        ...     do_something()
        >>> print(f"Latency: {timer.latency_us}μs")
    """

    __slots__ = ("start_us", "end_us", "latency_us")

    def __init__(self) -> None:
        self.start_us: int = 0
        self.end_us: int = 0
        self.latency_us: int = 0

    def __enter__(self) -> "LatencyTimer":
        self.start_us = get_timestamp_us()
        return self

    def __exit__(self, *args: object) -> None:
        self.end_us = get_timestamp_us()
        self.latency_us = self.end_us - self.start_us


def format_duration_us(duration_us: float) -> str:
    """
    Format a duration in microseconds for human-readable display.

    Examples:
        >>> format_duration_us(500)
        '500μs'
        >>> format_duration_us(1500)
        '1.50ms'
        >>> format_duration_us(1500000)
        '1.50s'
    """
    if duration_us < 1000:
        return f"{duration_us:.0f}μs"
    elif duration_us < 1_000_000:
        return f"{duration_us / 1000:.2f}ms"
    else:
        return f"{duration_us / 1_000_000:.2f}s"
