"""
Opportunity detection.

Scans tracked pairs for movements that clear the adaptive threshold,
sizes a candidate trade, estimates its profit after the network fee and
attaches a confidence score.
"""

import logging
from dataclasses import dataclass, field

from swapengine.config.constants import (
    ACCELERATION_FACTOR,
    BASE_BALANCE_FRACTION,
    BASE_UNIT_SIZE,
    DEBOUNCE_BYPASS_MOVEMENT,
    DEFAULT_MIN_TRADE_SIZE,
    DEFAULT_NETWORK_FEE,
    DOWNTREND_DIRECTION,
    DOWNTREND_MIN_PAIRS,
    DOWNTREND_OVERRIDE_MOVEMENT,
    HIGH_VALUE_FACTOR,
    LONG_TERM_LOOKBACK,
    MAX_OPPORTUNITIES_PER_SCAN,
    MEDIUM_TERM_LOOKBACK,
    MIN_CONFIDENCE,
    MIN_CONFIDENCE_BASE_INPUT,
    MIN_POTENTIAL_PROFIT,
    OTHER_BALANCE_FRACTION,
    OTHER_UNIT_FRACTION,
    PROFIT_DUST_FLOOR,
    SCAN_THROTTLE_SECONDS,
    SIGNAL_DEBOUNCE_SECONDS,
    STABLE_BALANCE_FRACTION,
    STABLE_UNIT_SIZE,
    VOLATILITY_MULT_HIGH,
    VOLATILITY_MULT_MEDIUM,
    VOLATILITY_STEP_HIGH,
    VOLATILITY_STEP_MEDIUM,
)
from swapengine.core.event_bus import EventBus, EventType
from swapengine.core.types import Opportunity, TradingPair
from swapengine.ledger.pnl import AdaptiveThreshold
from swapengine.strategy.history import PriceHistoryTracker
from swapengine.strategy.scoring import SuccessRateTracker, calculate_confidence
from swapengine.strategy.valuation import AssetClassifier, AssetValuator


logger = logging.getLogger(__name__)


@dataclass
class DetectorConfig:
    """Opportunity detector configuration."""

    pairs: list[TradingPair]
    high_value_pairs: frozenset[str] = frozenset()
    reference_pairs: tuple[str, ...] = ()
    min_trade_size: float = DEFAULT_MIN_TRADE_SIZE
    network_fee: float = DEFAULT_NETWORK_FEE
    throttle_seconds: float = SCAN_THROTTLE_SECONDS
    debounce_seconds: float = SIGNAL_DEBOUNCE_SECONDS
    debounce_bypass: float = DEBOUNCE_BYPASS_MOVEMENT
    medium_lookback: int = MEDIUM_TERM_LOOKBACK
    long_lookback: int = LONG_TERM_LOOKBACK
    downtrend_min_pairs: int = DOWNTREND_MIN_PAIRS
    downtrend_override: float = DOWNTREND_OVERRIDE_MOVEMENT
    min_confidence: float = MIN_CONFIDENCE
    min_confidence_base_input: float = MIN_CONFIDENCE_BASE_INPUT
    min_potential_profit: float = MIN_POTENTIAL_PROFIT
    profit_dust_floor: float = PROFIT_DUST_FLOOR
    max_opportunities: int = MAX_OPPORTUNITIES_PER_SCAN


@dataclass(slots=True)
class MovementSignal:
    """A pair movement that passed significance, debounce and trend checks."""

    pair: TradingPair
    price: float
    short_term: float
    medium_term: float
    long_term: float
    significant: bool
    accelerating: bool
    high_value: bool
    timestamp: float


@dataclass
class DetectorStats:
    """Statistics for opportunity detection."""

    total_scans: int = 0
    signals: int = 0
    suppressed_downtrend: int = 0
    below_min_size: int = 0
    below_dust: int = 0
    filtered_out: int = 0
    opportunities_found: int = 0
    best_potential_profit: float = 0.0
    _confidence_sum: float = field(default=0.0, repr=False)

    @property
    def avg_confidence(self) -> float:
        if not self.opportunities_found:
            return 0.0
        return self._confidence_sum / self.opportunities_found

    def record_opportunity(self, opportunity: Opportunity) -> None:
        self.opportunities_found += 1
        self._confidence_sum += opportunity.confidence
        if opportunity.potential_profit > self.best_potential_profit:
            self.best_potential_profit = opportunity.potential_profit


class OpportunityDetector:
    """
    Detects short-term price dislocations worth trading.

    Features:
    - Throttled scans (no side effects inside the throttle window)
    - Per-pair signal debounce
    - Base-asset downtrend guard
    - Volatility-scaled position sizing
    - Confidence ranking with a top-N cut
    """

    def __init__(
        self,
        config: DetectorConfig,
        threshold: AdaptiveThreshold,
        classifier: AssetClassifier,
        tracker: PriceHistoryTracker | None = None,
        success_rates: SuccessRateTracker | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        """
        Initialize opportunity detector.

        Args:
            config: Detector configuration.
            threshold: Adaptive movement threshold shared with the ledger.
            classifier: Asset class lookup (base asset included).
            tracker: Price history; a fresh one is created if omitted.
            success_rates: Per-pair historical success rates.
            event_bus: Optional event sink.
        """
        self._config = config
        self._threshold = threshold
        self._classifier = classifier
        self._valuator = AssetValuator(classifier.base_asset)
        self._tracker = tracker or PriceHistoryTracker()
        self._success_rates = success_rates or SuccessRateTracker()
        self._event_bus = event_bus

        self._last_scan = float("-inf")
        self._stats = DetectorStats()

    # =========================================================================
    # Price Tracking
    # =========================================================================

    def track(self, prices: dict[str, float], now: float) -> int:
        """
        Feed the latest prices into the history without detecting.

        Returns:
            Number of pairs updated.
        """
        updated = 0
        for pair in self._config.pairs:
            price = prices.get(pair.name)
            if price and price > 0:
                short_term = self._tracker.update(pair, price, now)
                updated += 1
                if abs(short_term) > VOLATILITY_STEP_MEDIUM:
                    logger.info(f"{pair} significant movement: {short_term:+.4f}%")
        return updated

    # =========================================================================
    # Detection
    # =========================================================================

    def scan(
        self,
        prices: dict[str, float],
        balances: dict[str, float],
        now: float,
    ) -> list[Opportunity]:
        """
        Run one detection cycle.

        Calls within the throttle interval return an empty list and
        change nothing.

        Args:
            prices: Pair name -> current price.
            balances: Asset -> available balance.
            now: Current time in seconds.

        Returns:
            At most `max_opportunities` opportunities, best first.
        """
        if now - self._last_scan < self._config.throttle_seconds:
            return []

        self._last_scan = now
        self._stats.total_scans += 1

        candidates: list[Opportunity] = []
        for pair in self._config.pairs:
            price = prices.get(pair.name)
            if not price or price <= 0:
                continue

            signal = self.evaluate(pair, price, now)
            if signal is None:
                continue

            opportunity = self._build_opportunity(signal, prices, balances)
            if opportunity is not None:
                candidates.append(opportunity)

        selected = self._apply_filters(candidates)
        for opportunity in selected:
            self._stats.record_opportunity(opportunity)
            logger.info(
                f"Opportunity {opportunity.pair}: {opportunity.percent_change:+.4f}% "
                f"amount={opportunity.suggested_amount:.6f} "
                f"profit={opportunity.potential_profit:.6f} "
                f"confidence={opportunity.confidence:.1f}"
            )
            if self._event_bus:
                self._event_bus.emit(EventType.OPPORTUNITY_DETECTED, opportunity, source="detector")

        return selected

    def evaluate(self, pair: TradingPair, price: float, now: float) -> MovementSignal | None:
        """
        Update a pair's history and decide whether it signals.

        A firing signal stamps the pair's last signal time.

        Returns:
            The signal, or None if the pair does not fire.
        """
        short_term = self._tracker.update(pair, price, now)
        if not self._tracker.has_history(pair, 2):
            return None

        medium_term = self._tracker.movement_over(pair, self._config.medium_lookback)
        long_term = self._tracker.movement_over(pair, self._config.long_lookback)

        magnitude = abs(short_term)
        significant = magnitude >= self._threshold.value
        # medium_term is 0.0 until the lookback fills, so any early move accelerates
        accelerating = magnitude > abs(medium_term) / 3
        high_value = pair.name in self._config.high_value_pairs

        if not (significant or (accelerating and high_value)):
            return None

        window = self._tracker.window(pair)
        since_last = now - window.last_signal_time
        if since_last <= self._config.debounce_seconds and magnitude <= self._config.debounce_bypass:
            logger.debug(f"{pair} debounced ({since_last:.1f}s since last signal)")
            return None

        if self._classifier.is_base(pair.quote) and self._base_downtrend():
            if magnitude < self._config.downtrend_override:
                self._stats.suppressed_downtrend += 1
                logger.debug(f"{pair} suppressed: base asset downtrend")
                return None

        window.last_signal_time = now
        self._stats.signals += 1

        return MovementSignal(
            pair=pair,
            price=price,
            short_term=short_term,
            medium_term=medium_term,
            long_term=long_term,
            significant=significant,
            accelerating=accelerating,
            high_value=high_value,
            timestamp=now,
        )

    def _base_downtrend(self) -> bool:
        """Check whether enough reference pairs are moving down."""
        falling = sum(
            1
            for name in self._config.reference_pairs
            if self._tracker.direction(name) < DOWNTREND_DIRECTION
        )
        return falling >= self._config.downtrend_min_pairs

    # =========================================================================
    # Sizing & Scoring
    # =========================================================================

    def suggest_amount(self, asset: str, balance: float, movement: float) -> float:
        """
        Size a trade from the available balance and movement size.

        Args:
            asset: Input asset.
            balance: Available input balance.
            movement: Absolute short-term movement in percent.

        Returns:
            Suggested input amount.
        """
        multiplier = 1.0
        if movement > VOLATILITY_STEP_HIGH:
            multiplier = VOLATILITY_MULT_HIGH
        elif movement > VOLATILITY_STEP_MEDIUM:
            multiplier = VOLATILITY_MULT_MEDIUM

        if self._classifier.is_base(asset):
            return min(BASE_UNIT_SIZE * multiplier, balance * BASE_BALANCE_FRACTION)
        if self._classifier.is_stable(asset):
            return min(STABLE_UNIT_SIZE * multiplier, balance * STABLE_BALANCE_FRACTION)
        return min(balance * OTHER_BALANCE_FRACTION, balance * OTHER_UNIT_FRACTION * multiplier)

    def _build_opportunity(
        self,
        signal: MovementSignal,
        prices: dict[str, float],
        balances: dict[str, float],
    ) -> Opportunity | None:
        pair = signal.pair
        magnitude = abs(signal.short_term)

        amount = self.suggest_amount(pair.base, balances.get(pair.base, 0.0), magnitude)
        if amount < self._config.min_trade_size:
            self._stats.below_min_size += 1
            logger.debug(
                f"Skipping {pair}: amount {amount:.6f} below minimum {self._config.min_trade_size}"
            )
            return None

        trade_value = self._valuator.value_in_base(pair.base, amount, prices)
        if not trade_value or trade_value <= 0:
            logger.debug(f"Skipping {pair}: no base valuation for {pair.base}")
            return None

        fee_pct = self._config.network_fee / trade_value * 100.0

        profit_pct = magnitude
        if signal.accelerating:
            profit_pct *= ACCELERATION_FACTOR
        if signal.high_value:
            profit_pct *= HIGH_VALUE_FACTOR
        profit_pct -= fee_pct

        potential_profit = profit_pct / 100.0 * trade_value
        if potential_profit <= self._config.profit_dust_floor:
            self._stats.below_dust += 1
            logger.debug(f"Skipping {pair}: potential profit {potential_profit:.8f} is dust")
            return None

        confidence = calculate_confidence(
            signal.short_term,
            signal.medium_term,
            signal.accelerating,
            self._success_rates.rate(pair.name),
        )

        return Opportunity(
            pair=pair,
            observed_price=signal.price,
            percent_change=signal.short_term,
            medium_term_change=signal.medium_term,
            suggested_amount=amount,
            estimated_fee_percent=fee_pct,
            potential_profit=potential_profit,
            confidence=confidence,
            accelerating=signal.accelerating,
            high_value=signal.high_value,
            timestamp=signal.timestamp,
        )

    def _apply_filters(self, candidates: list[Opportunity]) -> list[Opportunity]:
        """Drop weak candidates and keep the best by confidence x profit."""
        kept = []
        for opp in candidates:
            min_confidence = (
                self._config.min_confidence_base_input
                if self._classifier.is_base(opp.input_asset)
                else self._config.min_confidence
            )
            if opp.confidence < min_confidence or opp.potential_profit < self._config.min_potential_profit:
                self._stats.filtered_out += 1
                logger.debug(
                    f"Filtered {opp.pair}: confidence={opp.confidence:.1f} "
                    f"profit={opp.potential_profit:.6f}"
                )
                continue
            kept.append(opp)

        # sorted() is stable, ties keep pair order
        kept = sorted(kept, key=lambda o: o.score, reverse=True)
        return kept[: self._config.max_opportunities]

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def tracker(self) -> PriceHistoryTracker:
        return self._tracker

    @property
    def success_rates(self) -> SuccessRateTracker:
        return self._success_rates

    @property
    def threshold(self) -> float:
        """Current adaptive movement threshold in percent."""
        return self._threshold.value

    @property
    def stats(self) -> DetectorStats:
        return self._stats
