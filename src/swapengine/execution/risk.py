"""
Pre-trade risk controls.

Provides the profit-to-slippage validator, confidence-tiered slippage
selection, and the trade gate enforcing the minimum inter-trade interval
and the cap on concurrently active trades.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from swapengine.config.constants import (
    DEFAULT_BASE_SLIPPAGE_BPS,
    DEFAULT_MAX_CONCURRENT_TRADES,
    DEFAULT_MAX_SLIPPAGE_BPS,
    DEFAULT_MIN_TRADE_INTERVAL,
    DEFAULT_PROFIT_FRACTION_OVERRIDES,
    DEFAULT_SLIPPAGE_OVERRIDES,
    FEE_BUFFER,
    GROSS_PROFIT_HAIRCUT,
    HIGH_CONFIDENCE_TIER,
    LOW_CONFIDENCE_SCALE,
    LOW_CONFIDENCE_TIER,
    MID_CONFIDENCE_SCALE,
    PROFIT_FRACTION_BASE,
    PROFIT_FRACTION_MAJOR,
    PROFIT_FRACTION_STABLE,
    PROFIT_FRACTION_UNKNOWN,
    PROFIT_FRACTION_VOLATILE,
    SLIPPAGE_MODIFIER_BASE,
    SLIPPAGE_MODIFIER_MAJOR,
    SLIPPAGE_MODIFIER_STABLE,
    SLIPPAGE_MODIFIER_UNKNOWN,
    SLIPPAGE_MODIFIER_VOLATILE,
)
from swapengine.core.types import AssetClass, Opportunity, SlippageBudget
from swapengine.strategy.valuation import AssetClassifier


logger = logging.getLogger(__name__)


DEFAULT_PROFIT_FRACTIONS: dict[AssetClass, float] = {
    AssetClass.BASE: PROFIT_FRACTION_BASE,
    AssetClass.STABLE: PROFIT_FRACTION_STABLE,
    AssetClass.MAJOR: PROFIT_FRACTION_MAJOR,
    AssetClass.VOLATILE: PROFIT_FRACTION_VOLATILE,
    AssetClass.UNKNOWN: PROFIT_FRACTION_UNKNOWN,
}

DEFAULT_SLIPPAGE_MODIFIERS: dict[AssetClass, float] = {
    AssetClass.BASE: SLIPPAGE_MODIFIER_BASE,
    AssetClass.STABLE: SLIPPAGE_MODIFIER_STABLE,
    AssetClass.MAJOR: SLIPPAGE_MODIFIER_MAJOR,
    AssetClass.VOLATILE: SLIPPAGE_MODIFIER_VOLATILE,
    AssetClass.UNKNOWN: SLIPPAGE_MODIFIER_UNKNOWN,
}


class ValidationResult:
    """Result of a risk check."""

    __slots__ = ("passed", "reason", "net_profit_pct", "required_profit_pct")

    def __init__(
        self,
        passed: bool,
        reason: str = "",
        net_profit_pct: float = 0.0,
        required_profit_pct: float = 0.0,
    ) -> None:
        self.passed = passed
        self.reason = reason
        self.net_profit_pct = net_profit_pct
        self.required_profit_pct = required_profit_pct

    def __bool__(self) -> bool:
        return self.passed


@dataclass
class RiskConfig:
    """Risk validation configuration."""

    profit_fractions: dict[AssetClass, float] = field(
        default_factory=lambda: dict(DEFAULT_PROFIT_FRACTIONS)
    )
    profit_fraction_overrides: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_PROFIT_FRACTION_OVERRIDES)
    )
    gross_haircut: float = GROSS_PROFIT_HAIRCUT
    fee_buffer: float = FEE_BUFFER


class RiskValidator:
    """
    Profit-to-slippage gate.

    A candidate passes only if its haircut net profit reaches the
    required fraction of the slippage tolerance it is about to request.
    Pure and side-effect free.
    """

    def __init__(self, classifier: AssetClassifier, config: RiskConfig | None = None) -> None:
        self._classifier = classifier
        self._config = config or RiskConfig()

    def required_fraction(self, asset: str) -> float:
        """Required profit fraction for an input asset."""
        override = self._config.profit_fraction_overrides.get(asset)
        if override is not None:
            return override
        asset_class = self._classifier.classify(asset)
        return self._config.profit_fractions.get(
            asset_class, self._config.profit_fractions[AssetClass.UNKNOWN]
        )

    def net_profit_pct(self, opportunity: Opportunity) -> float:
        """Haircut gross movement minus the buffered fee estimate."""
        return (
            abs(opportunity.percent_change) * self._config.gross_haircut
            - opportunity.estimated_fee_percent * self._config.fee_buffer
        )

    def evaluate(self, opportunity: Opportunity, tolerance_bps: int) -> ValidationResult:
        """
        Check an opportunity against a slippage tolerance.

        Args:
            opportunity: Candidate trade.
            tolerance_bps: Slippage tolerance that will be requested.

        Returns:
            ValidationResult with the numbers behind the decision.
        """
        slippage_pct = tolerance_bps / 100.0
        required = slippage_pct * self.required_fraction(opportunity.input_asset)
        net = self.net_profit_pct(opportunity)

        if net >= required:
            return ValidationResult(True, "", net, required)

        return ValidationResult(
            False,
            f"net profit {net:.4f}% below required {required:.4f}% "
            f"for {tolerance_bps}bps slippage",
            net,
            required,
        )

    def validate(self, opportunity: Opportunity, tolerance_bps: int) -> bool:
        """Return True only if net profit >= slippage x required fraction."""
        return self.evaluate(opportunity, tolerance_bps).passed


class SlippagePolicy:
    """
    Chooses the slippage tolerance for an opportunity.

    Base tolerance x asset-class modifier, scaled by confidence tier:
    x0.7 below 70, x0.9 between 70 and 85, x1.0 above 85.
    """

    def __init__(
        self,
        classifier: AssetClassifier,
        validator: RiskValidator,
        base_bps: int = DEFAULT_BASE_SLIPPAGE_BPS,
        max_bps: int = DEFAULT_MAX_SLIPPAGE_BPS,
        modifiers: dict[AssetClass, float] | None = None,
        overrides: dict[str, float] | None = None,
    ) -> None:
        self._classifier = classifier
        self._validator = validator
        self._base_bps = base_bps
        self._max_bps = max_bps
        self._modifiers = modifiers or dict(DEFAULT_SLIPPAGE_MODIFIERS)
        self._overrides = dict(DEFAULT_SLIPPAGE_OVERRIDES if overrides is None else overrides)

    def modifier(self, asset: str) -> float:
        override = self._overrides.get(asset)
        if override is not None:
            return override
        return self._modifiers.get(
            self._classifier.classify(asset), self._modifiers[AssetClass.UNKNOWN]
        )

    def select(self, opportunity: Opportunity) -> SlippageBudget:
        """Derive the slippage budget for an opportunity."""
        bps = self._base_bps * self.modifier(opportunity.input_asset)

        if opportunity.confidence < LOW_CONFIDENCE_TIER:
            bps *= LOW_CONFIDENCE_SCALE
        elif opportunity.confidence <= HIGH_CONFIDENCE_TIER:
            bps *= MID_CONFIDENCE_SCALE

        tolerance = max(1, min(round(bps), self._max_bps))
        return SlippageBudget(
            tolerance_bps=tolerance,
            required_profit_fraction=self._validator.required_fraction(opportunity.input_asset),
        )

    @property
    def max_bps(self) -> int:
        return self._max_bps


@dataclass
class GateConfig:
    """Trade gate configuration."""

    min_trade_interval: float = DEFAULT_MIN_TRADE_INTERVAL
    max_concurrent_trades: int = DEFAULT_MAX_CONCURRENT_TRADES


class TradeGate:
    """
    Rate and concurrency limiter for trade starts.

    The active counter is incremented before a trade runs and decremented
    on every exit path.
    """

    def __init__(self, config: GateConfig | None = None) -> None:
        self._config = config or GateConfig()
        self._active = 0
        self._last_trade_time = float("-inf")

    def check(self, now: float) -> ValidationResult:
        """Check whether a new trade may start at `now`."""
        if self._active >= self._config.max_concurrent_trades:
            return ValidationResult(False, f"{self._active} trades already active")

        elapsed = now - self._last_trade_time
        if elapsed < self._config.min_trade_interval:
            return ValidationResult(
                False,
                f"Cooldown: {self._config.min_trade_interval - elapsed:.1f}s remaining",
            )

        return ValidationResult(True)

    def acquire(self, now: float) -> None:
        """
        Take an active-trade slot and stamp the trade start.

        Raises:
            RuntimeError: If the gate is closed; call check() first.
        """
        result = self.check(now)
        if not result:
            raise RuntimeError(f"Trade gate closed: {result.reason}")
        self._active += 1
        self._last_trade_time = now

    def release(self) -> None:
        """Give back a slot taken by acquire()."""
        self._active = max(self._active - 1, 0)

    @contextmanager
    def slot(self, now: float) -> Iterator[None]:
        """Hold an active-trade slot for the duration of the block."""
        self.acquire(now)
        try:
            yield
        finally:
            self.release()

    @property
    def active_trades(self) -> int:
        return self._active
