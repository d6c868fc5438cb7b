"""
Confidence scoring and per-pair success tracking.
"""

import logging
from dataclasses import dataclass

from swapengine.config.constants import (
    ACCELERATION_BONUS,
    CONFIDENCE_MAX,
    CONFIDENCE_MIN,
    CONTRADICTION_MIN_MOVEMENT,
    CONTRADICTION_PENALTY,
    DEFAULT_SUCCESS_RATES,
    FALLBACK_SUCCESS_RATE,
    MIN_TRADES_FOR_RATE,
    MOVEMENT_CONFIDENCE_CAP,
    MOVEMENT_CONFIDENCE_SCALE,
    SUCCESS_RATE_MAX,
    SUCCESS_RATE_MIN,
    SUCCESS_RATE_WEIGHT,
)
from swapengine.utils.math import clamp, sign


logger = logging.getLogger(__name__)


def calculate_confidence(
    short_term: float,
    medium_term: float,
    accelerating: bool,
    success_rate: float,
) -> float:
    """
    Score a movement signal.

    Combines movement magnitude, momentum and the pair's historical
    success rate, penalizing signals whose medium-term direction
    contradicts the short-term move.

    Args:
        short_term: Latest sample-to-sample movement in percent.
        medium_term: Movement over the medium lookback in percent.
        accelerating: Whether the move is accelerating.
        success_rate: Historical success rate of the pair (0-1).

    Returns:
        Confidence clamped to [10, 95].
    """
    confidence = clamp(abs(short_term) * MOVEMENT_CONFIDENCE_SCALE, 0.0, MOVEMENT_CONFIDENCE_CAP)

    if accelerating:
        confidence += ACCELERATION_BONUS

    confidence += success_rate * SUCCESS_RATE_WEIGHT

    if sign(medium_term) != sign(short_term) and abs(medium_term) > CONTRADICTION_MIN_MOVEMENT:
        confidence -= CONTRADICTION_PENALTY

    return clamp(confidence, CONFIDENCE_MIN, CONFIDENCE_MAX)


@dataclass
class PairOutcomes:
    """Trade outcome counts for one pair."""

    successful: int = 0
    total: int = 0

    @property
    def rate(self) -> float:
        return self.successful / self.total if self.total else 0.0


class SuccessRateTracker:
    """
    Historical success rate per pair.

    Uses a per-pair default until enough real outcomes exist, then the
    observed ratio clamped to [0.3, 0.95].
    """

    def __init__(
        self,
        defaults: dict[str, float] | None = None,
        fallback: float = FALLBACK_SUCCESS_RATE,
        min_trades: int = MIN_TRADES_FOR_RATE,
    ) -> None:
        self._defaults = dict(DEFAULT_SUCCESS_RATES if defaults is None else defaults)
        self._fallback = fallback
        self._min_trades = min_trades
        self._outcomes: dict[str, PairOutcomes] = {}

    def record_outcome(self, pair: str, success: bool) -> None:
        """Record the outcome of a trade on a pair."""
        outcomes = self._outcomes.setdefault(pair, PairOutcomes())
        outcomes.total += 1
        if success:
            outcomes.successful += 1

    def rate(self, pair: str) -> float:
        """Get the success rate used for scoring a pair."""
        outcomes = self._outcomes.get(pair)
        if outcomes is None or outcomes.total < self._min_trades:
            return self._defaults.get(pair, self._fallback)
        return clamp(outcomes.rate, SUCCESS_RATE_MIN, SUCCESS_RATE_MAX)

    def outcomes(self, pair: str) -> PairOutcomes:
        return self._outcomes.get(pair, PairOutcomes())
