"""Strategy module: price history, detection and scoring."""

from swapengine.strategy.history import PriceHistoryTracker
from swapengine.strategy.opportunity import DetectorConfig, MovementSignal, OpportunityDetector
from swapengine.strategy.scoring import SuccessRateTracker, calculate_confidence
from swapengine.strategy.valuation import AssetClassifier, AssetValuator


__all__ = [
    "AssetClassifier",
    "AssetValuator",
    "DetectorConfig",
    "MovementSignal",
    "OpportunityDetector",
    "PriceHistoryTracker",
    "SuccessRateTracker",
    "calculate_confidence",
]
