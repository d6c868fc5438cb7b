"""
Sweeps non-base balances back into the base asset after a trade.

Each sweep is retried with a widening slippage tolerance. A sweep that
keeps failing is reported, never raised, so the trading loop carries on.
"""

import logging
from dataclasses import dataclass

from swapengine.config.constants import (
    CONSOLIDATION_ATTEMPTS,
    CONSOLIDATION_DUST_FLOOR,
    CONSOLIDATION_SLIPPAGE_STEP_BPS,
    CONSOLIDATION_SWEEP_FRACTION,
    DEFAULT_BASE_SLIPPAGE_BPS,
    DEFAULT_MAX_SLIPPAGE_BPS,
    DEFAULT_NETWORK_FEE,
    RETRY_BASE_DELAY,
)
from swapengine.core.event_bus import EventBus, EventType
from swapengine.core.session import Session
from swapengine.core.types import ConsolidationResult, ConsolidationTask, TradeResult
from swapengine.execution.executor import TradeExecutor
from swapengine.execution.retry import RetryExhaustedError, RetryPolicy, retry_async
from swapengine.ledger.pnl import PnLLedger
from swapengine.strategy.valuation import AssetValuator
from swapengine.utils.math import round_down
from swapengine.utils.time import get_timestamp
from swapengine.venue.client import VenueUnavailableError


logger = logging.getLogger(__name__)


class SweepFailedError(Exception):
    """A single sweep attempt did not settle."""


def _retry_sweep(exc: BaseException) -> bool:
    return not isinstance(exc, VenueUnavailableError)


@dataclass
class ConsolidationConfig:
    """Consolidation configuration."""

    dust_floor: float = CONSOLIDATION_DUST_FLOOR
    sweep_fraction: float = CONSOLIDATION_SWEEP_FRACTION
    max_attempts: int = CONSOLIDATION_ATTEMPTS
    base_slippage_bps: int = DEFAULT_BASE_SLIPPAGE_BPS
    slippage_step_bps: int = CONSOLIDATION_SLIPPAGE_STEP_BPS
    max_slippage_bps: int = DEFAULT_MAX_SLIPPAGE_BPS
    retry_base_delay: float = RETRY_BASE_DELAY
    network_fee: float = DEFAULT_NETWORK_FEE


class ConsolidationManager:
    """
    Converts trade output back into the base asset.

    Keeps 5% of the balance behind as a buffer against fees and rounding.
    """

    def __init__(
        self,
        executor: TradeExecutor,
        session: Session,
        ledger: PnLLedger,
        valuator: AssetValuator,
        config: ConsolidationConfig | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        """
        Initialize consolidation manager.

        Args:
            executor: Executor used to run the sweep swaps.
            session: Shared session (balances and prices).
            ledger: Ledger receiving realized sweep profit.
            valuator: Converts the swept asset into base units.
            config: Consolidation configuration.
            event_bus: Optional event sink.
        """
        self._executor = executor
        self._session = session
        self._ledger = ledger
        self._valuator = valuator
        self._config = config or ConsolidationConfig()
        self._event_bus = event_bus

        self._policy = RetryPolicy(
            max_attempts=self._config.max_attempts,
            base_delay=self._config.retry_base_delay,
            is_retryable=_retry_sweep,
        )
        self._completed = 0
        self._failed = 0

    def plan(
        self, result: TradeResult, balances: dict[str, float] | None = None
    ) -> ConsolidationTask | None:
        """
        Decide whether a settled trade leaves anything to sweep.

        Args:
            result: Settled trade.
            balances: Balance snapshot; defaults to the session balances.

        Returns:
            A task, or None when the output is the base asset or dust.
        """
        if not result.success:
            return None

        asset = result.output_asset
        if asset == self._session.base_asset:
            return None

        snapshot = self._session.balances if balances is None else balances
        amount = snapshot.get(asset, 0.0)
        if amount <= self._config.dust_floor:
            logger.debug(f"No consolidation for {asset}: balance {amount:.6f} is dust")
            return None

        return ConsolidationTask(asset, amount, self._config.max_attempts)

    def slippage_for_attempt(self, attempt: int) -> int:
        """Slippage tolerance of a 0-based attempt."""
        bps = self._config.base_slippage_bps + attempt * self._config.slippage_step_bps
        return min(bps, self._config.max_slippage_bps)

    async def consolidate(self, task: ConsolidationTask) -> ConsolidationResult:
        """
        Sweep a balance into the base asset.

        Returns:
            ConsolidationResult; failures are reported with success=False.

        Raises:
            VenueUnavailableError: If the venue connection is lost.
        """
        base = self._session.base_asset
        attempt = 0

        async def sweep() -> TradeResult:
            nonlocal attempt
            slippage_bps = self.slippage_for_attempt(attempt)
            attempt += 1
            task.attempts_remaining -= 1

            available = self._session.balance(task.asset)
            amount = round_down(min(available, task.amount) * self._config.sweep_fraction)
            if amount <= 0:
                raise SweepFailedError(f"No {task.asset} left to sweep")

            logger.info(
                f"Consolidating {amount:.6f} {task.asset} -> {base} "
                f"(attempt {attempt}/{self._config.max_attempts}, {slippage_bps}bps)"
            )
            swap = await self._executor.swap(task.asset, base, amount, slippage_bps)
            if not swap.success:
                raise SweepFailedError(swap.error)
            return swap

        try:
            swap = await retry_async(sweep, self._policy, name=f"consolidate {task.asset}")
        except RetryExhaustedError as e:
            self._failed += 1
            logger.error(f"Consolidation of {task.asset} abandoned: {e}")
            return ConsolidationResult(
                asset=task.asset,
                success=False,
                input_amount=task.amount,
                attempts=attempt,
                error=str(e.last_error),
            )

        net_profit = self._record_profit(swap)
        self._completed += 1

        result = ConsolidationResult(
            asset=task.asset,
            success=True,
            input_amount=swap.input_amount,
            output_amount=swap.output_amount,
            attempts=attempt,
            tx_id=swap.tx_id,
            net_profit=net_profit,
        )
        logger.info(
            f"Consolidated {swap.input_amount:.6f} {task.asset} -> "
            f"{swap.output_amount:.6f} {base}, net {net_profit:+.6f}"
        )
        if self._event_bus:
            self._event_bus.emit(EventType.CONSOLIDATION_COMPLETED, result, source="consolidation")
        return result

    def _record_profit(self, swap: TradeResult) -> float:
        """Record output minus input value minus fee; unpriced inputs are skipped."""
        input_value = self._valuator.value_in_base(
            swap.input_asset, swap.input_amount, self._session.prices
        )
        if input_value is None:
            logger.warning(f"No {swap.input_asset} price, sweep profit not recorded")
            return 0.0

        net = swap.output_amount - input_value - self._config.network_fee
        self._ledger.record(net, get_timestamp())
        return net

    @property
    def completed(self) -> int:
        return self._completed

    @property
    def failed(self) -> int:
        return self._failed
