"""
Unit tests for pre-trade risk controls.

Tests the profit-to-slippage validator, slippage selection and the
trade gate.
"""

from dataclasses import replace

import pytest

from swapengine.core.types import Opportunity, TradingPair
from swapengine.execution.risk import (
    GateConfig,
    RiskValidator,
    SlippagePolicy,
    TradeGate,
    ValidationResult,
)
from swapengine.strategy.valuation import AssetClassifier


@pytest.fixture
def validator(classifier: AssetClassifier) -> RiskValidator:
    return RiskValidator(classifier)


@pytest.fixture
def policy(classifier: AssetClassifier, validator: RiskValidator) -> SlippagePolicy:
    return SlippagePolicy(classifier, validator)


class TestRiskValidator:
    """Tests for RiskValidator."""

    def test_strong_opportunity_passes(
        self, validator: RiskValidator, opportunity: Opportunity
    ) -> None:
        """Test a 3% move against a 90bps tolerance."""
        result = validator.evaluate(opportunity, 90)

        assert result.passed
        assert result.required_profit_pct == pytest.approx(0.675)
        assert result.net_profit_pct == pytest.approx(2.6946)

    def test_net_profit_below_slippage_fails(
        self, validator: RiskValidator, opportunity: Opportunity
    ) -> None:
        """Test a 0.5% move against a 500bps tolerance."""
        weak = replace(opportunity, percent_change=0.5, estimated_fee_percent=0.01)

        result = validator.evaluate(weak, 500)

        assert not result
        assert result.net_profit_pct == pytest.approx(0.435)
        assert result.required_profit_pct == pytest.approx(3.75)
        assert "below required" in result.reason
        assert validator.validate(weak, 500) is False

    def test_negative_movement_uses_magnitude(
        self, validator: RiskValidator, opportunity: Opportunity
    ) -> None:
        falling = replace(opportunity, percent_change=-3.0)
        assert validator.validate(falling, 90)

    def test_exact_boundary_passes(
        self, validator: RiskValidator, opportunity: Opportunity
    ) -> None:
        """Test that net == required is accepted."""
        edge = replace(opportunity, percent_change=1.0, estimated_fee_percent=0.0)
        # net = 0.9, required = 1.2% x 0.75
        assert validator.validate(edge, 120)

    @pytest.mark.parametrize(
        "asset,fraction",
        [
            ("SOL", 0.75),
            ("USDC", 0.70),
            ("mSOL", 0.75),
            ("BONK", 0.90),
            ("JTO", 0.85),
            ("XYZ", 0.80),
        ],
    )
    def test_required_fraction(
        self, validator: RiskValidator, asset: str, fraction: float
    ) -> None:
        assert validator.required_fraction(asset) == pytest.approx(fraction)


class TestSlippagePolicy:
    """Tests for SlippagePolicy.select."""

    def test_mid_confidence_tier(self, policy: SlippagePolicy, opportunity: Opportunity) -> None:
        """Test that confidence 80.5 scales the base tolerance by 0.9."""
        budget = policy.select(opportunity)

        assert budget.tolerance_bps == 90
        assert budget.required_profit_fraction == pytest.approx(0.75)
        assert budget.min_required_profit_pct == pytest.approx(0.675)

    @pytest.mark.parametrize(
        "confidence,expected",
        [(60.0, 70), (70.0, 90), (85.0, 90), (90.0, 100)],
    )
    def test_confidence_tiers(
        self,
        policy: SlippagePolicy,
        opportunity: Opportunity,
        confidence: float,
        expected: int,
    ) -> None:
        budget = policy.select(replace(opportunity, confidence=confidence))
        assert budget.tolerance_bps == expected

    def test_asset_class_modifiers(
        self, policy: SlippagePolicy, opportunity: Opportunity
    ) -> None:
        """Test stable, volatile and overridden input assets."""
        stable = replace(opportunity, pair=TradingPair("USDC", "SOL"), confidence=90.0)
        volatile = replace(opportunity, pair=TradingPair("BONK", "SOL"), confidence=90.0)
        jto = replace(opportunity, pair=TradingPair("JTO", "SOL"), confidence=60.0)

        assert policy.select(stable).tolerance_bps == 50
        assert policy.select(volatile).tolerance_bps == 300
        assert policy.select(jto).tolerance_bps == 140

    def test_clamped_to_max(
        self,
        classifier: AssetClassifier,
        validator: RiskValidator,
        opportunity: Opportunity,
    ) -> None:
        policy = SlippagePolicy(classifier, validator, max_bps=250)
        volatile = replace(opportunity, pair=TradingPair("BONK", "SOL"), confidence=90.0)

        assert policy.select(volatile).tolerance_bps == 250

    def test_never_below_one_bps(
        self,
        classifier: AssetClassifier,
        validator: RiskValidator,
        opportunity: Opportunity,
    ) -> None:
        policy = SlippagePolicy(classifier, validator, base_bps=1)
        stable = replace(opportunity, pair=TradingPair("USDC", "SOL"), confidence=60.0)

        assert policy.select(stable).tolerance_bps == 1


class TestValidationResult:
    """Tests for ValidationResult."""

    def test_truthiness(self) -> None:
        assert ValidationResult(True)
        assert not ValidationResult(False, "nope")


class TestTradeGate:
    """Tests for TradeGate."""

    @pytest.fixture
    def gate(self) -> TradeGate:
        return TradeGate(GateConfig(min_trade_interval=5.0, max_concurrent_trades=2))

    def test_open_initially(self, gate: TradeGate) -> None:
        assert gate.check(0.0)
        assert gate.active_trades == 0

    def test_cooldown(self, gate: TradeGate) -> None:
        """Test the minimum interval between trade starts."""
        gate.acquire(0.0)

        result = gate.check(3.0)
        assert not result
        assert "Cooldown" in result.reason
        assert gate.check(5.0)

    def test_concurrency_cap(self, gate: TradeGate) -> None:
        gate.acquire(0.0)
        gate.acquire(5.0)

        result = gate.check(20.0)
        assert not result
        assert "already active" in result.reason

        gate.release()
        assert gate.check(20.0)

    def test_acquire_when_closed_raises(self, gate: TradeGate) -> None:
        gate.acquire(0.0)

        with pytest.raises(RuntimeError, match="Trade gate closed"):
            gate.acquire(1.0)

        assert gate.active_trades == 1

    def test_release_floor(self, gate: TradeGate) -> None:
        gate.release()
        assert gate.active_trades == 0

    def test_slot_released_on_error(self, gate: TradeGate) -> None:
        """Test that the slot is returned on every exit path."""
        with pytest.raises(ValueError):
            with gate.slot(0.0):
                assert gate.active_trades == 1
                raise ValueError("boom")

        assert gate.active_trades == 0
