"""
Metrics collection for performance monitoring.

Tracks latencies, counters and trading statistics in memory. The
collector can feed itself from the event bus.
"""

import time
from collections import deque
from dataclasses import dataclass
from typing import Any

from swapengine.core.event_bus import Event, EventBus, EventType
from swapengine.core.types import ConsolidationResult, Opportunity, TradeResult


@dataclass
class LatencyStats:
    """Aggregated latency statistics."""

    min_us: int = 0
    max_us: int = 0
    avg_us: float = 0.0
    p50_us: int = 0
    p99_us: int = 0
    count: int = 0


@dataclass
class TradingStats:
    """Trading performance statistics."""

    opportunities_detected: int = 0
    opportunities_rejected: int = 0
    trades_settled: int = 0
    trades_failed: int = 0
    trades_indeterminate: int = 0
    consolidations_completed: int = 0
    consolidations_failed: int = 0
    realized_profit: float = 0.0
    best_move_pct: float = 0.0

    @property
    def trades_attempted(self) -> int:
        return self.trades_settled + self.trades_failed

    @property
    def success_rate(self) -> float:
        total = self.trades_attempted
        return self.trades_settled / total if total > 0 else 0.0


class MetricsCollector:
    """
    Collects and aggregates engine metrics.

    Features:
    - Rolling window latency tracking
    - Named counters
    - Trading statistics and realized profit
    """

    def __init__(self, latency_window_size: int = 1000) -> None:
        """
        Initialize metrics collector.

        Args:
            latency_window_size: Number of samples kept per latency metric.
        """
        self._window_size = latency_window_size
        self._latencies: dict[str, deque[int]] = {}
        self._counters: dict[str, int] = {}
        self._trading = TradingStats()
        self._start_time = time.time()

    def attach(self, event_bus: EventBus) -> None:
        """Subscribe to the execution events this collector counts."""
        event_bus.subscribe_sync(EventType.OPPORTUNITY_DETECTED, self._on_opportunity)
        event_bus.subscribe_sync(EventType.TRADE_SETTLED, self._on_trade)
        event_bus.subscribe_sync(EventType.TRADE_FAILED, self._on_trade)
        event_bus.subscribe_sync(EventType.CONSOLIDATION_COMPLETED, self._on_consolidation)

    def _on_opportunity(self, event: Event[Any]) -> None:
        self.record_opportunity(event.payload)

    def _on_trade(self, event: Event[Any]) -> None:
        self.record_trade(event.payload)

    def _on_consolidation(self, event: Event[Any]) -> None:
        self.record_consolidation(event.payload)

    def record_latency(self, name: str, latency_us: int) -> None:
        """
        Record a latency measurement.

        Args:
            name: Metric name (e.g. "price_fetch", "trade").
            latency_us: Latency in microseconds.
        """
        if name not in self._latencies:
            self._latencies[name] = deque(maxlen=self._window_size)
        self._latencies[name].append(latency_us)

    def increment_counter(self, name: str, value: int = 1) -> None:
        self._counters[name] = self._counters.get(name, 0) + value

    def get_counter(self, name: str) -> int:
        return self._counters.get(name, 0)

    def record_opportunity(self, opportunity: Opportunity) -> None:
        self._trading.opportunities_detected += 1
        move = abs(opportunity.percent_change)
        if move > self._trading.best_move_pct:
            self._trading.best_move_pct = move

    def record_rejection(self, reason: str) -> None:
        """Count an opportunity dropped by risk checks."""
        self._trading.opportunities_rejected += 1
        self.increment_counter(f"rejected_{reason}")

    def record_trade(self, result: TradeResult) -> None:
        if result.success:
            self._trading.trades_settled += 1
            if result.is_indeterminate:
                self._trading.trades_indeterminate += 1
        else:
            self._trading.trades_failed += 1

        if result.end_timestamp_us:
            self.record_latency("trade", result.latency_us)

    def record_consolidation(self, result: ConsolidationResult) -> None:
        if result.success:
            self._trading.consolidations_completed += 1
        else:
            self._trading.consolidations_failed += 1

    def record_profit(self, amount: float) -> None:
        """Record realized profit in base units."""
        self._trading.realized_profit += amount

    def get_latency_stats(self, name: str) -> LatencyStats:
        samples = self._latencies.get(name)
        if not samples:
            return LatencyStats()

        ordered = sorted(samples)
        n = len(ordered)
        return LatencyStats(
            min_us=ordered[0],
            max_us=ordered[-1],
            avg_us=sum(ordered) / n,
            p50_us=ordered[n // 2],
            p99_us=ordered[int(n * 0.99)] if n > 1 else ordered[-1],
            count=n,
        )

    @property
    def trading_stats(self) -> TradingStats:
        return self._trading

    @property
    def uptime_seconds(self) -> float:
        return time.time() - self._start_time
