"""
Unit tests for the profit ledger and adaptive threshold.
"""

from pathlib import Path
from typing import Any

import pytest

from swapengine.core.event_bus import Event, EventBus, EventType
from swapengine.ledger.pnl import AdaptiveThreshold, LedgerConfig, PnLLedger
from swapengine.ledger.store import PnLStore


# 2023-11-14 22:13:20 UTC
T0 = 1_700_000_000.0


class TestAdaptiveThreshold:
    """Tests for AdaptiveThreshold."""

    def test_inverted_band_rejected(self) -> None:
        with pytest.raises(ValueError, match="inverted"):
            AdaptiveThreshold(0.05, 0.5, 0.03)

    def test_initial_clamped(self) -> None:
        assert AdaptiveThreshold(1.0, 0.03, 0.5).value == 0.5
        assert AdaptiveThreshold(0.01, 0.03, 0.5).value == 0.03

    def test_scale_clamped(self, threshold: AdaptiveThreshold) -> None:
        assert threshold.scale(100.0) == 0.5
        assert threshold.scale(0.0) == 0.03

    def test_reset(self, threshold: AdaptiveThreshold) -> None:
        threshold.set(0.2)
        assert threshold.reset() == 0.05


class TestLedgerAdaptation:
    """Tests for threshold adaptation on record()."""

    def test_raise_until_band_maximum(self) -> None:
        """Test two idle updates against a narrow band."""
        ledger = PnLLedger(AdaptiveThreshold(0.05, 0.03, 0.06))

        assert ledger.record(0.0, T0) == pytest.approx(0.055)
        assert ledger.record(0.0, T0 + 1) == pytest.approx(0.06)

    def test_lower_above_high_water_mark(self, ledger: PnLLedger) -> None:
        assert ledger.record(0.2, T0) == pytest.approx(0.045)

    def test_unchanged_between_marks(self, ledger: PnLLedger) -> None:
        assert ledger.record(0.05, T0) == pytest.approx(0.05)

    def test_threshold_stays_in_band(self, ledger: PnLLedger) -> None:
        for i in range(100):
            ledger.record(0.0, T0 + i)
        assert ledger.threshold.value == 0.5

        for i in range(100):
            ledger.record(1.0, T0 + 100 + i)
        assert ledger.threshold.value == 0.03

    def test_non_positive_amounts_not_recorded(self, ledger: PnLLedger) -> None:
        ledger.record(-0.01, T0)
        ledger.record(0.0, T0 + 1)

        assert ledger.records == []
        assert ledger.total_profit == 0.0

    def test_adjustment_event(self, threshold: AdaptiveThreshold) -> None:
        bus = EventBus()
        received: list[Event[Any]] = []
        bus.subscribe_sync(EventType.THRESHOLD_ADJUSTED, received.append)
        ledger = PnLLedger(threshold, event_bus=bus)

        ledger.record(0.0, T0)

        assert len(received) == 1
        change = received[0].payload
        assert change.previous == pytest.approx(0.05)
        assert change.current == pytest.approx(0.055)
        assert change.reason == "below low-water mark"

    def test_reset_threshold(self, ledger: PnLLedger) -> None:
        ledger.record(0.0, T0)
        assert ledger.reset_threshold() == pytest.approx(0.05)


class TestLedgerHistory:
    """Tests for the rolling hour and retention window."""

    def test_hourly_window(self, ledger: PnLLedger) -> None:
        ledger.record(0.05, T0)
        ledger.record(0.0, T0 + 4000)

        assert ledger.hourly_profit(T0 + 4000) == 0.0
        assert ledger.last_hourly_profit == 0.0
        assert len(ledger.records) == 1

    def test_hourly_sum(self, ledger: PnLLedger) -> None:
        ledger.record(0.03, T0)
        ledger.record(0.04, T0 + 60)

        assert ledger.last_hourly_profit == pytest.approx(0.07)

    def test_retention_prunes_old_records(self, ledger: PnLLedger) -> None:
        ledger.record(0.05, T0)
        ledger.record(0.0, T0 + 25 * 3600)

        assert ledger.records == []
        assert ledger.total_profit == pytest.approx(0.05)


class TestDailyTarget:
    """Tests for the daily profit target."""

    def test_disabled_by_default(self, ledger: PnLLedger) -> None:
        ledger.record(100.0, T0)
        assert not ledger.daily_target_reached(T0)

    def test_reached_and_rolls_over(self, threshold: AdaptiveThreshold) -> None:
        ledger = PnLLedger(threshold, LedgerConfig(daily_profit_target=0.1))

        ledger.record(0.06, T0)
        assert not ledger.daily_target_reached(T0)

        ledger.record(0.05, T0 + 10)
        assert ledger.daily_target_reached(T0 + 10)
        assert ledger.today_profit == pytest.approx(0.11)

        assert not ledger.daily_target_reached(T0 + 86400)
        assert ledger.today_profit == 0.0


class TestLedgerRestore:
    """Tests for persistence and restore."""

    def test_restore_without_store(self, ledger: PnLLedger) -> None:
        assert ledger.restore(T0) == 0

    def test_restore_empty_store(self, tmp_path: Path, threshold: AdaptiveThreshold) -> None:
        ledger = PnLLedger(threshold, store=PnLStore(tmp_path / "pnl.jsonl"))

        assert ledger.restore(T0) == 0
        assert ledger.threshold.value == 0.05

    def test_restore_history_and_threshold(self, tmp_path: Path) -> None:
        store = PnLStore(tmp_path / "pnl.jsonl")
        first = PnLLedger(AdaptiveThreshold(0.05, 0.03, 0.5), store=store)
        first.record(0.2, T0)
        first.record(0.0, T0 + 10)
        saved = first.threshold.value

        second = PnLLedger(AdaptiveThreshold(0.05, 0.03, 0.5), store=store)
        restored = second.restore(T0 + 20)

        assert restored == 1
        assert second.threshold.value == pytest.approx(saved)
        assert second.today_profit == pytest.approx(0.2)
        assert second.last_hourly_profit == pytest.approx(0.2)

    def test_restore_skips_expired_records(self, tmp_path: Path) -> None:
        store = PnLStore(tmp_path / "pnl.jsonl")
        PnLLedger(AdaptiveThreshold(0.05, 0.03, 0.5), store=store).record(0.2, T0)

        ledger = PnLLedger(AdaptiveThreshold(0.05, 0.03, 0.5), store=store)

        assert ledger.restore(T0 + 2 * 86400) == 0
        assert ledger.threshold.value == pytest.approx(0.045)
