"""
Rolling price history per trading pair.

Keeps a bounded FIFO window of price samples for each pair and derives
short, medium and long-term percentage movement from it.
"""

from collections import deque

from swapengine.config.constants import PRICE_HISTORY_SIZE
from swapengine.core.types import PricePoint, PriceMovementWindow, TradingPair
from swapengine.utils.math import pct_change, sign


class PriceHistoryTracker:
    """
    Maintains one PriceMovementWindow per pair.

    Windows are created on first use and live as long as the tracker.
    Updating is a pure state change with no failure modes.
    """

    def __init__(self, window_size: int = PRICE_HISTORY_SIZE) -> None:
        """
        Initialize tracker.

        Args:
            window_size: Maximum samples kept per pair.
        """
        self._window_size = window_size
        self._windows: dict[str, PriceMovementWindow] = {}

    def window(self, pair: TradingPair) -> PriceMovementWindow:
        """Get (or create) the window for a pair."""
        window = self._windows.get(pair.name)
        if window is None:
            window = PriceMovementWindow(pair=pair, history=deque(maxlen=self._window_size))
            self._windows[pair.name] = window
        return window

    def update(self, pair: TradingPair, price: float, now: float) -> float:
        """
        Append a price sample.

        The oldest sample is evicted once the window is full.

        Args:
            pair: Trading pair.
            price: Current price.
            now: Sample timestamp in seconds.

        Returns:
            Short-term movement in percent (0.0 for the first sample).
        """
        window = self.window(pair)
        previous = window.history[-1].price if window.history else None

        window.history.append(PricePoint(price, now))
        window.last_price = price

        short_term = pct_change(previous, price) if previous else 0.0
        window.short_term = short_term
        window.direction = sign(short_term)
        window.volatility = abs(short_term)

        return short_term

    def movement_over(self, pair: TradingPair, lookback: int) -> float:
        """
        Movement in percent from `lookback` samples ago to the latest price.

        Returns 0.0 when fewer than `lookback` samples exist.
        """
        window = self._windows.get(pair.name)
        if window is None or lookback <= 0 or len(window.history) < lookback:
            return 0.0
        reference = window.history[-lookback].price
        return pct_change(reference, window.last_price)

    def has_history(self, pair: TradingPair, samples: int) -> bool:
        """Check whether a pair has at least `samples` points."""
        window = self._windows.get(pair.name)
        return window is not None and len(window.history) >= samples

    def direction(self, pair_name: str) -> int:
        """Last movement direction of a pair by name (0 if untracked)."""
        window = self._windows.get(pair_name)
        return window.direction if window else 0

    def sample_count(self, pair: TradingPair) -> int:
        window = self._windows.get(pair.name)
        return len(window.history) if window else 0

    @property
    def windows(self) -> dict[str, PriceMovementWindow]:
        return self._windows
