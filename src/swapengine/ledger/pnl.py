"""
Realized profit ledger and adaptive movement threshold.

The ledger records net-positive settlements, keeps a 24-hour history and
a rolling-hour sum, and after every update nudges the detector's
movement threshold inside a fixed [min, max] band.
"""

import logging
from collections import deque
from dataclasses import dataclass
from datetime import date

from swapengine.config.constants import (
    DEFAULT_HIGH_WATER_MARK,
    DEFAULT_LOW_WATER_MARK,
    PNL_RETENTION_SECONDS,
    PNL_WINDOW_SECONDS,
    THRESHOLD_LOWER_FACTOR,
    THRESHOLD_RAISE_FACTOR,
    TRADE_HISTORY_SIZE,
)
from swapengine.core.event_bus import EventBus, EventType
from swapengine.core.types import PnLRecord, TradeRecord
from swapengine.ledger.store import PnLEntry, PnLStore
from swapengine.utils.math import clamp
from swapengine.utils.time import utc_date


logger = logging.getLogger(__name__)


class AdaptiveThreshold:
    """
    Minimum movement percentage required to flag a pair.

    Every mutation is clamped to the [minimum, maximum] band.
    """

    __slots__ = ("_initial", "_minimum", "_maximum", "_value")

    def __init__(self, initial: float, minimum: float, maximum: float) -> None:
        """
        Initialize threshold.

        Args:
            initial: Configured starting value in percent.
            minimum: Lower bound of the band.
            maximum: Upper bound of the band.

        Raises:
            ValueError: If the band is inverted.
        """
        if minimum > maximum:
            raise ValueError(f"Threshold band inverted: [{minimum}, {maximum}]")
        self._minimum = minimum
        self._maximum = maximum
        self._initial = clamp(initial, minimum, maximum)
        self._value = self._initial

    @property
    def value(self) -> float:
        return self._value

    @property
    def initial(self) -> float:
        return self._initial

    @property
    def minimum(self) -> float:
        return self._minimum

    @property
    def maximum(self) -> float:
        return self._maximum

    def set(self, value: float) -> float:
        """Set the threshold, clamped to the band. Returns the new value."""
        self._value = clamp(value, self._minimum, self._maximum)
        return self._value

    def scale(self, factor: float) -> float:
        """Multiply the threshold by factor, clamped to the band."""
        return self.set(self._value * factor)

    def reset(self) -> float:
        """Return to the configured starting value."""
        self._value = self._initial
        return self._value


@dataclass
class LedgerConfig:
    """Ledger configuration."""

    retention_seconds: float = PNL_RETENTION_SECONDS
    window_seconds: float = PNL_WINDOW_SECONDS
    low_water_mark: float = DEFAULT_LOW_WATER_MARK
    high_water_mark: float = DEFAULT_HIGH_WATER_MARK
    raise_factor: float = THRESHOLD_RAISE_FACTOR
    lower_factor: float = THRESHOLD_LOWER_FACTOR
    daily_profit_target: float = 0.0  # 0 disables
    trade_history_size: int = TRADE_HISTORY_SIZE


@dataclass
class ThresholdChange:
    """Payload of a threshold_adjusted event."""

    previous: float
    current: float
    hourly_profit: float
    reason: str


class PnLLedger:
    """
    Tracks realized profit and adapts the movement threshold.

    Features:
    - 24-hour pruned profit history
    - Rolling-hour profit sum
    - Bounded threshold adaptation after every update
    - Daily profit total with UTC date rollover
    - Optional append-only persistence
    """

    def __init__(
        self,
        threshold: AdaptiveThreshold,
        config: LedgerConfig | None = None,
        store: PnLStore | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        """
        Initialize ledger.

        Args:
            threshold: Threshold shared with the opportunity detector.
            config: Ledger configuration.
            store: Optional persistence backend.
            event_bus: Optional event sink.
        """
        self._threshold = threshold
        self._config = config or LedgerConfig()
        self._store = store
        self._event_bus = event_bus

        self._records: deque[PnLRecord] = deque()
        self._trades: deque[TradeRecord] = deque(maxlen=self._config.trade_history_size)
        self._hourly_profit = 0.0
        self._today: date | None = None
        self._today_profit = 0.0
        self._total_profit = 0.0

    def record(self, amount: float, now: float) -> float:
        """
        Record a settlement result and adapt the threshold.

        Only net-positive amounts are appended to the history; the
        threshold is re-evaluated on every call.

        Args:
            amount: Realized profit in base units.
            now: Settlement timestamp in seconds.

        Returns:
            Threshold value after adaptation.
        """
        self._roll_day(now)

        recorded = 0.0
        if amount > 0:
            self._records.append(PnLRecord(amount, now))
            self._today_profit += amount
            self._total_profit += amount
            recorded = amount
            logger.info(f"Realized profit {amount:.6f}, today {self._today_profit:.6f}")

        self._prune(now)
        self._hourly_profit = self.hourly_profit(now)
        self._adapt()

        if self._store:
            self._store.append(PnLEntry(now, recorded, self._threshold.value))

        return self._threshold.value

    def hourly_profit(self, now: float) -> float:
        """Sum of profit recorded within the rolling window ending at now."""
        cutoff = now - self._config.window_seconds
        return sum(r.amount_base for r in self._records if r.timestamp >= cutoff)

    def _prune(self, now: float) -> None:
        cutoff = now - self._config.retention_seconds
        while self._records and self._records[0].timestamp < cutoff:
            self._records.popleft()

    def _adapt(self) -> None:
        """Raise the threshold below the low-water mark, lower it above the high-water mark."""
        previous = self._threshold.value

        if self._hourly_profit < self._config.low_water_mark:
            current = self._threshold.scale(self._config.raise_factor)
            reason = "below low-water mark"
        elif self._hourly_profit > self._config.high_water_mark:
            current = self._threshold.scale(self._config.lower_factor)
            reason = "above high-water mark"
        else:
            return

        if current != previous:
            logger.info(
                f"Threshold {previous:.4f}% -> {current:.4f}% "
                f"(hourly profit {self._hourly_profit:.6f}, {reason})"
            )
            self._emit_change(previous, current, reason)

    def reset_threshold(self, reason: str = "scheduled reset") -> float:
        """Reset the threshold to its configured value."""
        previous = self._threshold.value
        current = self._threshold.reset()
        if current != previous:
            logger.info(f"Threshold reset {previous:.4f}% -> {current:.4f}% ({reason})")
            self._emit_change(previous, current, reason)
        return current

    def _emit_change(self, previous: float, current: float, reason: str) -> None:
        if self._event_bus:
            self._event_bus.emit(
                EventType.THRESHOLD_ADJUSTED,
                ThresholdChange(previous, current, self._hourly_profit, reason),
                source="ledger",
            )

    def restore(self, now: float) -> int:
        """
        Reload retained history and the last threshold from the store.

        A missing or empty store leaves the configured threshold in place.

        Returns:
            Number of profit records restored.
        """
        if not self._store:
            return 0

        entries = self._store.load()
        if not entries:
            logger.info(f"No saved ledger, threshold {self._threshold.value:.4f}%")
            return 0

        cutoff = now - self._config.retention_seconds
        restored = 0
        for entry in entries:
            if entry.amount > 0 and entry.timestamp >= cutoff:
                self._records.append(PnLRecord(entry.amount, entry.timestamp))
                restored += 1
                if utc_date(entry.timestamp) == utc_date(now):
                    self._today_profit += entry.amount
        self._today = utc_date(now)

        self._threshold.set(entries[-1].threshold)
        self._hourly_profit = self.hourly_profit(now)
        logger.info(
            f"Restored {restored} profit records, threshold {self._threshold.value:.4f}%"
        )
        return restored

    def _roll_day(self, now: float) -> None:
        today = utc_date(now)
        if self._today != today:
            if self._today is not None:
                logger.info(f"New trading day, yesterday's profit {self._today_profit:.6f}")
            self._today = today
            self._today_profit = 0.0

    def add_trade(self, trade: TradeRecord) -> None:
        """Keep a settled trade in the bounded history."""
        self._trades.append(trade)

    def daily_target_reached(self, now: float) -> bool:
        """Check whether today's profit reached the configured target."""
        self._roll_day(now)
        target = self._config.daily_profit_target
        return target > 0 and self._today_profit >= target

    @property
    def threshold(self) -> AdaptiveThreshold:
        return self._threshold

    @property
    def records(self) -> list[PnLRecord]:
        return list(self._records)

    @property
    def trades(self) -> list[TradeRecord]:
        return list(self._trades)

    @property
    def last_hourly_profit(self) -> float:
        """Rolling-hour profit computed at the last update."""
        return self._hourly_profit

    @property
    def today_profit(self) -> float:
        return self._today_profit

    @property
    def total_profit(self) -> float:
        """Profit recorded since the ledger was created."""
        return self._total_profit
