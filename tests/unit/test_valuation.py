"""
Unit tests for asset classification, valuation and pair parsing.
"""

import pytest

from swapengine.core.types import AssetClass, TradingPair
from swapengine.strategy.valuation import AssetClassifier, AssetValuator
from swapengine.utils.math import pct_change, round_down


class TestTradingPair:
    """Tests for TradingPair."""

    def test_parse(self) -> None:
        pair = TradingPair.parse("SOL/USDC")

        assert pair.base == "SOL"
        assert pair.quote == "USDC"
        assert str(pair) == "SOL/USDC"

    @pytest.mark.parametrize("name", ["SOL", "SOL/", "/USDC", "A/B/C", "SOL/SOL"])
    def test_parse_invalid(self, name: str) -> None:
        with pytest.raises(ValueError):
            TradingPair.parse(name)


class TestAssetClassifier:
    """Tests for AssetClassifier."""

    @pytest.mark.parametrize(
        "asset,expected",
        [
            ("SOL", AssetClass.BASE),
            ("USDC", AssetClass.STABLE),
            ("mSOL", AssetClass.MAJOR),
            ("BONK", AssetClass.VOLATILE),
            ("XYZ", AssetClass.UNKNOWN),
        ],
    )
    def test_classify(
        self, classifier: AssetClassifier, asset: str, expected: AssetClass
    ) -> None:
        assert classifier.classify(asset) == expected


class TestAssetValuator:
    """Tests for AssetValuator."""

    def test_base_is_unity(self, valuator: AssetValuator) -> None:
        assert valuator.price_in_base("SOL", {}) == 1.0
        assert valuator.value_in_base("SOL", 2.5, {}) == 2.5

    def test_direct_pair(self, valuator: AssetValuator) -> None:
        """Test an ASSET/BASE pair."""
        assert valuator.price_in_base("mSOL", {"mSOL/SOL": 1.1}) == pytest.approx(1.1)

    def test_inverse_pair(self, valuator: AssetValuator) -> None:
        """Test a BASE/ASSET pair."""
        prices = {"SOL/USDC": 100.0}

        assert valuator.price_in_base("USDC", prices) == pytest.approx(0.01)
        assert valuator.value_in_base("USDC", 14.42, prices) == pytest.approx(0.1442)

    def test_unpriced(self, valuator: AssetValuator) -> None:
        assert valuator.price_in_base("BONK", {"SOL/USDC": 100.0}) is None
        assert valuator.value_in_base("BONK", 1.0, {}) is None

    def test_zero_price_ignored(self, valuator: AssetValuator) -> None:
        assert valuator.price_in_base("USDC", {"SOL/USDC": 0.0}) is None


class TestMath:
    """Tests for numeric helpers."""

    def test_pct_change(self) -> None:
        assert pct_change(100.0, 103.0) == pytest.approx(3.0)
        assert pct_change(0.0, 1.0) == 0.0

    def test_round_down(self) -> None:
        assert round_down(1.23456789, 4) == 1.2345
        assert round_down(0.019, 2) == 0.01
