"""
Trade execution state machine.

QUOTE_REQUESTED -> QUOTE_VALIDATED -> SUBMITTED -> CONFIRMING -> SETTLED | FAILED

Each external sub-step is retried with bounded backoff. Per-trade errors
are contained here and reported as a failed TradeResult; only a lost
venue connection propagates.
"""

import asyncio
import logging
from dataclasses import dataclass

from swapengine.config.constants import (
    CONFIRMATION_TIMEOUT,
    DEFAULT_MAX_PRICE_DEVIATION_PCT,
    QUOTE_ATTEMPTS,
    RETRY_BASE_DELAY,
    STATUS_POLL_ATTEMPTS,
    STATUS_POLL_INTERVAL,
    SUBMIT_ATTEMPTS,
)
from swapengine.core.event_bus import EventBus, EventType
from swapengine.core.session import Session
from swapengine.core.types import (
    BalanceSource,
    ExecutionVenue,
    Opportunity,
    Quote,
    QuoteService,
    SlippageBudget,
    TradeResult,
    TradeStage,
    TransactionStatus,
    TxStatus,
)
from swapengine.execution.retry import RetryExhaustedError, RetryPolicy, retry_async
from swapengine.utils.time import get_timestamp_us
from swapengine.venue.client import VenueUnavailableError, is_transient


logger = logging.getLogger(__name__)


class QuoteRejectedError(Exception):
    """Quote failed validation; the trade is skipped."""


class TransactionPendingError(Exception):
    """Transaction has no final status yet."""


@dataclass
class ExecutorConfig:
    """Executor configuration."""

    quote_attempts: int = QUOTE_ATTEMPTS
    submit_attempts: int = SUBMIT_ATTEMPTS
    retry_base_delay: float = RETRY_BASE_DELAY
    confirmation_timeout: float = CONFIRMATION_TIMEOUT
    status_poll_attempts: int = STATUS_POLL_ATTEMPTS
    status_poll_interval: float = STATUS_POLL_INTERVAL
    max_price_deviation_pct: float = DEFAULT_MAX_PRICE_DEVIATION_PCT
    ignore_price_deviation: bool = False


@dataclass
class ExecutorStats:
    """Execution statistics."""

    total: int = 0
    settled: int = 0
    failed: int = 0
    indeterminate: int = 0
    rejected: int = 0

    @property
    def success_rate(self) -> float:
        return self.settled / self.total if self.total else 0.0


def _keep_polling(exc: BaseException) -> bool:
    return not isinstance(exc, VenueUnavailableError)


class TradeExecutor:
    """
    Executes a single swap for an opportunity.

    Features:
    - Quote retry with exponential backoff
    - Quote re-validation against the observed price
    - Sign once, retry submission with the same intent
    - Native confirmation with status-polling fallback
    - Authoritative balance refresh after settlement
    """

    def __init__(
        self,
        quotes: QuoteService,
        venue: ExecutionVenue,
        balances: BalanceSource,
        session: Session,
        config: ExecutorConfig | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        """
        Initialize executor.

        Args:
            quotes: Quote service.
            venue: Execution venue.
            balances: Authoritative balance source.
            session: Shared session (signer and balances).
            config: Executor configuration.
            event_bus: Optional event sink.
        """
        self._quotes = quotes
        self._venue = venue
        self._balances = balances
        self._session = session
        self._config = config or ExecutorConfig()
        self._event_bus = event_bus
        self._stats = ExecutorStats()

        self._quote_policy = RetryPolicy(
            max_attempts=self._config.quote_attempts,
            base_delay=self._config.retry_base_delay,
            is_retryable=is_transient,
        )
        self._submit_policy = RetryPolicy(
            max_attempts=self._config.submit_attempts,
            base_delay=self._config.retry_base_delay,
            is_retryable=is_transient,
        )
        self._poll_policy = RetryPolicy(
            max_attempts=self._config.status_poll_attempts,
            base_delay=self._config.status_poll_interval,
            multiplier=1.0,
            is_retryable=_keep_polling,
        )

    async def execute(self, opportunity: Opportunity, slippage: SlippageBudget) -> TradeResult:
        """
        Execute an opportunity.

        Args:
            opportunity: Validated opportunity.
            slippage: Slippage budget to request.

        Returns:
            TradeResult; never raises for per-trade failures.

        Raises:
            VenueUnavailableError: If the venue connection is lost.
        """
        available = self._session.balance(opportunity.input_asset)
        if available < opportunity.suggested_amount:
            self._stats.total += 1
            self._stats.rejected += 1
            return self._failed(
                opportunity.input_asset,
                opportunity.output_asset,
                opportunity.suggested_amount,
                opportunity.pair.name,
                TradeStage.QUOTE_REQUESTED,
                f"Insufficient {opportunity.input_asset}: {available:.6f} < "
                f"{opportunity.suggested_amount:.6f}",
                get_timestamp_us(),
            )

        return await self.swap(
            opportunity.input_asset,
            opportunity.output_asset,
            opportunity.suggested_amount,
            slippage.tolerance_bps,
            expected_price=opportunity.observed_price,
        )

    async def swap(
        self,
        input_asset: str,
        output_asset: str,
        amount: float,
        slippage_bps: int,
        expected_price: float | None = None,
    ) -> TradeResult:
        """
        Run one swap through the full state machine.

        Args:
            input_asset: Asset to sell.
            output_asset: Asset to receive.
            amount: Input amount.
            slippage_bps: Slippage tolerance to request.
            expected_price: Observed output-per-input price to validate the
                quote against; None skips the deviation check.

        Returns:
            TradeResult; never raises for per-trade failures.

        Raises:
            VenueUnavailableError: If the venue connection is lost.
        """
        start_us = get_timestamp_us()
        self._stats.total += 1
        stage = TradeStage.QUOTE_REQUESTED
        tx_id: str | None = None
        pair = f"{input_asset}/{output_asset}"

        try:
            quote = await retry_async(
                lambda: self._quotes.get_quote(input_asset, output_asset, amount, slippage_bps),
                self._quote_policy,
                name=f"quote {pair}",
            )

            self.validate_quote(quote, expected_price)
            stage = TradeStage.QUOTE_VALIDATED

            intent = self._session.signer.sign(quote)
            tx_id = await retry_async(
                lambda: self._venue.submit(intent),
                self._submit_policy,
                name=f"submit {pair}",
            )
            stage = TradeStage.SUBMITTED
            logger.info(
                f"Submitted {pair}: {quote.input_amount:.6f} {quote.input_asset} -> "
                f"{quote.output_amount:.6f} {quote.output_asset} "
                f"slippage={slippage_bps}bps tx={tx_id}"
            )

            stage = TradeStage.CONFIRMING
            status = await self._confirm(tx_id)

            if status is not None and status.status == TxStatus.FAILED:
                self._stats.failed += 1
                return self._failed(
                    input_asset,
                    output_asset,
                    amount,
                    pair,
                    stage,
                    f"Transaction failed: {status.error}",
                    start_us,
                    tx_id,
                )

            before = self._session.balance(output_asset)
            await self.refresh_balances()

            if status is None:
                # Ledger is authoritative: take the output from the balance delta
                output_amount = max(self._session.balance(output_asset) - before, 0.0)
                confirmed = False
                self._stats.indeterminate += 1
                logger.warning(
                    f"Trade {pair} tx={tx_id} unconfirmed, observed output {output_amount:.6f}"
                )
            else:
                output_amount = quote.output_amount
                confirmed = True

            self._stats.settled += 1
            result = TradeResult(
                success=True,
                input_asset=input_asset,
                output_asset=output_asset,
                input_amount=quote.input_amount,
                output_amount=output_amount,
                tx_id=tx_id,
                stage=TradeStage.SETTLED,
                confirmed=confirmed,
                pair=pair,
                start_timestamp_us=start_us,
                end_timestamp_us=get_timestamp_us(),
            )
            if self._event_bus:
                self._event_bus.emit(EventType.TRADE_SETTLED, result, source="executor")
            return result

        except VenueUnavailableError:
            raise

        except QuoteRejectedError as e:
            self._stats.rejected += 1
            logger.info(f"Quote rejected for {pair}: {e}")
            return self._failed(input_asset, output_asset, amount, pair, stage, str(e), start_us, tx_id)

        except RetryExhaustedError as e:
            self._stats.failed += 1
            return self._failed(input_asset, output_asset, amount, pair, stage, str(e), start_us, tx_id)

        except Exception as e:
            self._stats.failed += 1
            logger.error(f"Execution error for {pair} at {stage.value}: {e}")
            return self._failed(input_asset, output_asset, amount, pair, stage, str(e), start_us, tx_id)

    def validate_quote(self, quote: Quote, expected_price: float | None) -> None:
        """
        Re-validate a quote against the observed price.

        Raises:
            QuoteRejectedError: If output is empty or the implied price
                deviates beyond the configured percentage.
        """
        if quote.output_amount <= 0:
            raise QuoteRejectedError("Quote output amount is zero")

        if self._config.ignore_price_deviation or not expected_price:
            return

        deviation = abs(quote.implied_price - expected_price) / expected_price * 100.0
        if deviation > self._config.max_price_deviation_pct:
            raise QuoteRejectedError(
                f"Implied price {quote.implied_price:.6f} deviates {deviation:.2f}% "
                f"from observed {expected_price:.6f} "
                f"(max {self._config.max_price_deviation_pct:.2f}%)"
            )

    async def _confirm(self, tx_id: str) -> TransactionStatus | None:
        """
        Wait for a final status.

        Returns:
            Final status, or None if the outcome is indeterminate.
        """
        try:
            status = await asyncio.wait_for(
                self._venue.wait_for_confirmation(tx_id),
                timeout=self._config.confirmation_timeout,
            )
            if status.is_final:
                return status
            logger.warning(f"Confirmation for {tx_id} returned {status.status.value}, polling")
        except VenueUnavailableError:
            raise
        except Exception as e:
            # Submitted: any confirmation error falls back to polling
            logger.warning(f"Confirmation wait for {tx_id} failed ({e!r}), polling status")

        try:
            return await retry_async(
                lambda: self._poll_status(tx_id),
                self._poll_policy,
                name=f"confirm {tx_id}",
            )
        except RetryExhaustedError:
            return None

    async def _poll_status(self, tx_id: str) -> TransactionStatus:
        status = await self._venue.get_status(tx_id)
        if not status.is_final:
            raise TransactionPendingError(f"{tx_id} still {status.status.value}")
        return status

    async def refresh_balances(self) -> dict[str, float]:
        """
        Re-read balances from the authoritative source into the session.

        A failed refresh keeps the previous snapshot; only a lost venue
        connection propagates.
        """
        try:
            balances = await retry_async(
                lambda: self._balances.get_balances(self._session.account),
                self._submit_policy,
                name="balance refresh",
            )
        except VenueUnavailableError:
            raise
        except Exception as e:
            logger.error(f"Balance refresh failed, keeping previous snapshot: {e}")
            return self._session.balances

        self._session.replace_balances(balances)
        return balances

    def _failed(
        self,
        input_asset: str,
        output_asset: str,
        amount: float,
        pair: str,
        stage: TradeStage,
        error: str,
        start_us: int,
        tx_id: str | None = None,
    ) -> TradeResult:
        result = TradeResult(
            success=False,
            input_asset=input_asset,
            output_asset=output_asset,
            input_amount=amount,
            tx_id=tx_id,
            stage=TradeStage.FAILED,
            error=f"{stage.value}: {error}",
            pair=pair,
            start_timestamp_us=start_us,
            end_timestamp_us=get_timestamp_us(),
        )
        if self._event_bus:
            self._event_bus.emit(EventType.TRADE_FAILED, result, source="executor")
        return result

    @property
    def stats(self) -> ExecutorStats:
        return self._stats
