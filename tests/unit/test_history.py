"""
Unit tests for PriceHistoryTracker.

Tests FIFO eviction, movement calculations and direction tracking.
"""

import pytest

from swapengine.core.types import TradingPair
from swapengine.strategy.history import PriceHistoryTracker


class TestPriceHistoryTracker:
    """Tests for PriceHistoryTracker."""

    @pytest.fixture
    def tracker(self) -> PriceHistoryTracker:
        return PriceHistoryTracker()

    def test_first_sample_has_no_movement(
        self, tracker: PriceHistoryTracker, sol_usdc: TradingPair
    ) -> None:
        """Test that the first sample reports zero movement."""
        assert tracker.update(sol_usdc, 100.0, 1.0) == 0.0
        assert tracker.sample_count(sol_usdc) == 1

    def test_short_term_movement(self, tracker: PriceHistoryTracker, sol_usdc: TradingPair) -> None:
        """Test sample-to-sample percentage change."""
        tracker.update(sol_usdc, 100.0, 1.0)
        movement = tracker.update(sol_usdc, 100.05, 2.0)

        assert movement == pytest.approx(0.05)
        window = tracker.window(sol_usdc)
        assert window.last_price == 100.05
        assert window.direction == 1
        assert window.volatility == pytest.approx(0.05)

    def test_downward_direction(self, tracker: PriceHistoryTracker, sol_usdc: TradingPair) -> None:
        """Test that a falling price sets direction to -1."""
        tracker.update(sol_usdc, 100.0, 1.0)
        tracker.update(sol_usdc, 99.0, 2.0)

        assert tracker.direction("SOL/USDC") == -1
        assert tracker.direction("SOL/USDT") == 0

    def test_window_never_exceeds_twenty(
        self, tracker: PriceHistoryTracker, sol_usdc: TradingPair
    ) -> None:
        """Test FIFO eviction keeps at most 20 samples."""
        for i in range(50):
            tracker.update(sol_usdc, 100.0 + i, float(i))

        window = tracker.window(sol_usdc)
        assert window.sample_count == 20
        # Oldest 30 samples were evicted in order
        assert window.history[0].price == 130.0
        assert window.history[-1].price == 149.0

    def test_movement_over_lookback(self, tracker: PriceHistoryTracker, sol_usdc: TradingPair) -> None:
        """Test movement over a lookback window."""
        for i, price in enumerate([100.0, 101.0, 102.0, 103.0, 104.0]):
            tracker.update(sol_usdc, price, float(i))

        # history[-5] is 100.0
        assert tracker.movement_over(sol_usdc, 5) == pytest.approx(4.0)
        # history[-2] is 103.0
        assert tracker.movement_over(sol_usdc, 2) == pytest.approx(100 / 103)

    def test_movement_over_insufficient_history(
        self, tracker: PriceHistoryTracker, sol_usdc: TradingPair
    ) -> None:
        """Test the 0.0 sentinel when history is too short."""
        tracker.update(sol_usdc, 100.0, 1.0)
        tracker.update(sol_usdc, 110.0, 2.0)

        assert tracker.movement_over(sol_usdc, 5) == 0.0
        assert tracker.movement_over(TradingPair("SOL", "USDT"), 2) == 0.0

    def test_has_history(self, tracker: PriceHistoryTracker, sol_usdc: TradingPair) -> None:
        """Test sample count checks."""
        assert not tracker.has_history(sol_usdc, 1)

        tracker.update(sol_usdc, 100.0, 1.0)
        tracker.update(sol_usdc, 100.0, 2.0)

        assert tracker.has_history(sol_usdc, 2)
        assert not tracker.has_history(sol_usdc, 3)

    def test_custom_window_size(self, sol_usdc: TradingPair) -> None:
        """Test a smaller window size."""
        tracker = PriceHistoryTracker(window_size=3)
        for i in range(5):
            tracker.update(sol_usdc, 100.0 + i, float(i))

        assert tracker.sample_count(sol_usdc) == 3
