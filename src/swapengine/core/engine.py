"""
Main swap engine orchestrator.

Wires the components together and runs the two periodic loops:
price tracking, and detection/execution. Each trade runs as its own
task so a slow confirmation never stalls price tracking.
"""

import asyncio
import logging
import signal
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TypeVar

from swapengine.config.settings import Settings
from swapengine.core.event_bus import EventBus, EventType
from swapengine.core.session import Session
from swapengine.core.types import Opportunity, SlippageBudget, TradeRecord, TradeResult, Venue
from swapengine.execution.consolidation import ConsolidationConfig, ConsolidationManager
from swapengine.execution.executor import ExecutorConfig, TradeExecutor
from swapengine.execution.risk import (
    GateConfig,
    RiskValidator,
    SlippagePolicy,
    TradeGate,
)
from swapengine.execution.signer import IntentSigner
from swapengine.ledger.pnl import AdaptiveThreshold, LedgerConfig, PnLLedger
from swapengine.ledger.store import PnLStore
from swapengine.simulation.venue import SimulatedVenue
from swapengine.strategy.opportunity import DetectorConfig, OpportunityDetector
from swapengine.strategy.scoring import SuccessRateTracker
from swapengine.strategy.valuation import AssetClassifier, AssetValuator
from swapengine.telemetry.logger import EventLogger
from swapengine.telemetry.metrics import MetricsCollector
from swapengine.telemetry.reporter import StatusReporter
from swapengine.utils.time import LatencyTimer, get_timestamp
from swapengine.venue.client import SwapVenueClient, VenueError, VenueUnavailableError


logger = logging.getLogger(__name__)

DAILY_TARGET_REASON = "daily profit target reached"

T = TypeVar("T")


def _ready(component: T | None) -> T:
    if component is None:
        raise RuntimeError("engine not set up")
    return component


class SwapEngine:
    """
    Trading engine orchestrator.

    Manages the complete lifecycle of:
    - Venue connectivity (real or simulated)
    - Price tracking and opportunity detection
    - Risk gating and trade execution
    - Consolidation back into the base asset
    - Profit ledger, threshold adaptation and reporting
    """

    def __init__(
        self,
        settings: Settings,
        venue: Venue | None = None,
        event_bus: EventBus | None = None,
        clock: Callable[[], float] = get_timestamp,
    ) -> None:
        """
        Initialize the engine.

        Args:
            settings: Application settings.
            venue: Venue to trade on; built from settings if omitted.
            event_bus: Event bus; a fresh one is created if omitted.
            clock: Wall-clock source in seconds.
        """
        self._settings = settings
        self._venue = venue
        self._event_bus = event_bus or EventBus()
        self._clock = clock

        self._running = False
        self._closed = False
        self._shutdown_event = asyncio.Event()
        self._fatal_error: BaseException | None = None
        self._trades: set[asyncio.Task[TradeResult]] = set()
        self._halted_for_target = False

        self._metrics = MetricsCollector()
        self._event_logger = EventLogger(self._event_bus)

        # Components (initialized in setup)
        self._session: Session | None = None
        self._ledger: PnLLedger | None = None
        self._detector: OpportunityDetector | None = None
        self._validator: RiskValidator | None = None
        self._slippage: SlippagePolicy | None = None
        self._gate: TradeGate | None = None
        self._executor: TradeExecutor | None = None
        self._consolidation: ConsolidationManager | None = None
        self._valuator: AssetValuator | None = None
        self._success_rates: SuccessRateTracker | None = None
        self._reporter: StatusReporter | None = None

    def _build_venue(self) -> Venue:
        s = self._settings
        if s.dry_run:
            logger.info("Dry run: trading against the simulated venue")
            return SimulatedVenue(balances=s.dry_run_balances)

        return SwapVenueClient(
            base_url=s.venue_url,
            api_key=s.venue_api_key.get_secret_value() if s.venue_api_key else None,
            request_timeout=s.request_timeout,
            confirmation_timeout=s.confirmation_timeout,
            max_connection_failures=s.max_connection_failures,
        )

    async def setup(self) -> None:
        """Initialize all components and load the starting state."""
        s = self._settings
        logger.info("Initializing swap engine...")

        if self._venue is None:
            self._venue = self._build_venue()

        signer = IntentSigner(s.wallet_address, s.wallet_secret.get_secret_value())
        threshold = AdaptiveThreshold(s.min_movement_threshold, s.threshold_min, s.threshold_max)

        self._ledger = PnLLedger(
            threshold,
            LedgerConfig(
                low_water_mark=s.low_water_mark,
                high_water_mark=s.high_water_mark,
                daily_profit_target=s.daily_profit_target,
            ),
            store=PnLStore(s.pnl_store_path) if s.pnl_store_path else None,
            event_bus=self._event_bus,
        )
        self._ledger.restore(self._clock())

        self._session = Session(signer=signer, base_asset=s.base_asset, threshold=threshold)

        classifier = AssetClassifier(
            s.base_asset, s.stable_assets, s.major_assets, s.volatile_assets
        )
        self._valuator = AssetValuator(s.base_asset)
        self._success_rates = SuccessRateTracker()

        self._detector = OpportunityDetector(
            DetectorConfig(
                pairs=s.pairs,
                high_value_pairs=frozenset(s.high_value_pairs),
                reference_pairs=tuple(s.reference_pairs),
                min_trade_size=s.min_trade_size,
                network_fee=s.network_fee,
            ),
            threshold,
            classifier,
            success_rates=self._success_rates,
            event_bus=self._event_bus,
        )

        self._validator = RiskValidator(classifier)
        self._slippage = SlippagePolicy(
            classifier,
            self._validator,
            base_bps=s.base_slippage_bps,
            max_bps=s.max_slippage_bps,
        )
        self._gate = TradeGate(
            GateConfig(
                min_trade_interval=s.min_trade_interval,
                max_concurrent_trades=s.max_concurrent_trades,
            )
        )

        self._executor = TradeExecutor(
            quotes=self._venue,
            venue=self._venue,
            balances=self._venue,
            session=self._session,
            config=ExecutorConfig(
                quote_attempts=s.quote_attempts,
                submit_attempts=s.submit_attempts,
                retry_base_delay=s.retry_base_delay,
                confirmation_timeout=s.confirmation_timeout,
                status_poll_attempts=s.status_poll_attempts,
                status_poll_interval=s.status_poll_interval,
                max_price_deviation_pct=s.max_price_deviation_pct,
                ignore_price_deviation=s.ignore_price_deviation,
            ),
            event_bus=self._event_bus,
        )
        self._consolidation = ConsolidationManager(
            self._executor,
            self._session,
            self._ledger,
            self._valuator,
            ConsolidationConfig(
                base_slippage_bps=s.base_slippage_bps,
                max_slippage_bps=s.max_slippage_bps,
                retry_base_delay=s.retry_base_delay,
                network_fee=s.network_fee,
            ),
            event_bus=self._event_bus,
        )

        self._metrics.attach(self._event_bus)
        self._event_logger.attach()
        self._reporter = StatusReporter(
            self._metrics, self._ledger, self._session, dry_run=s.dry_run
        )

        balances = await self._venue.get_balances(self._session.account)
        self._session.replace_balances(balances)
        logger.info(
            f"Account {self._session.account}: "
            f"{self._session.balance(s.base_asset):.6f} {s.base_asset}, "
            f"threshold {threshold.value:.4f}%"
        )
        logger.info(f"Tracking {len(s.pairs)} pairs")
        logger.info("Engine initialization complete")

    # =========================================================================
    # Ticks
    # =========================================================================

    async def price_tick(self, now: float | None = None) -> int:
        """
        Fetch prices and feed the history.

        Returns:
            Number of pairs updated.
        """
        venue = _ready(self._venue)
        detector = _ready(self._detector)
        now = self._clock() if now is None else now

        with LatencyTimer() as timer:
            prices = await venue.get_prices(self._settings.pairs)
        self._metrics.record_latency("price_fetch", timer.latency_us)

        _ready(self._session).replace_prices(prices)
        return detector.track(prices, now)

    async def trade_tick(self, now: float | None = None) -> list[asyncio.Task[TradeResult]]:
        """
        Run one detection cycle and start trades for what passes the gates.

        Returns:
            Tasks of the trades started in this cycle.
        """
        venue = _ready(self._venue)
        session = _ready(self._session)
        gate_keeper = _ready(self._gate)
        slippage = _ready(self._slippage)
        validator = _ready(self._validator)
        now = self._clock() if now is None else now

        self._check_daily_target(now)
        if not session.trading_enabled:
            return []

        prices = await venue.get_prices(self._settings.pairs)
        session.replace_prices(prices)

        started: list[asyncio.Task[TradeResult]] = []
        opportunities = _ready(self._detector).scan(prices, session.balances, now)

        for opportunity in opportunities:
            if self._shutdown_event.is_set():
                break

            gate = gate_keeper.check(now)
            if not gate:
                logger.debug(f"Skipping {opportunity.pair}: {gate.reason}")
                self._metrics.record_rejection("gate")
                break

            budget = slippage.select(opportunity)
            validation = validator.evaluate(opportunity, budget.tolerance_bps)
            if not validation:
                logger.info(f"Rejected {opportunity.pair}: {validation.reason}")
                self._metrics.record_rejection("risk")
                continue

            started.append(self._start_trade(opportunity, budget, now))

        return started

    def _start_trade(
        self, opportunity: Opportunity, budget: SlippageBudget, now: float
    ) -> asyncio.Task[TradeResult]:
        _ready(self._gate).acquire(now)

        task = asyncio.create_task(self._run_trade(opportunity, budget))
        self._trades.add(task)
        task.add_done_callback(self._on_trade_done)
        return task

    def _on_trade_done(self, task: asyncio.Task[TradeResult]) -> None:
        self._trades.discard(task)
        _ready(self._gate).release()

        if task.cancelled():
            return

        error = task.exception()
        if error is None:
            return
        if isinstance(error, VenueUnavailableError):
            self._fail(error)
        else:
            logger.error(f"Trade task crashed: {error!r}")

    async def _run_trade(self, opportunity: Opportunity, budget: SlippageBudget) -> TradeResult:
        """Execute, book, consolidate."""
        executor = _ready(self._executor)
        ledger = _ready(self._ledger)
        consolidation = _ready(self._consolidation)

        logger.info(
            f"Executing {opportunity.pair}: {opportunity.suggested_amount:.6f} "
            f"{opportunity.input_asset} at {budget.tolerance_bps}bps"
        )
        result = await executor.execute(opportunity, budget)
        _ready(self._success_rates).record_outcome(opportunity.pair.name, result.success)

        if not result.success:
            logger.warning(f"Trade {opportunity.pair} failed: {result.error}")
            return result

        now = self._clock()
        profit = self.trade_profit(result)
        if profit is not None:
            ledger.record(profit, now)
            self._metrics.record_profit(profit)

        ledger.add_trade(
            TradeRecord(
                pair=result.pair,
                input_amount=result.input_amount,
                output_amount=result.output_amount,
                profit_base=profit or 0.0,
                confirmed=result.confirmed,
                tx_id=result.tx_id,
                timestamp=now,
            )
        )

        task = consolidation.plan(result)
        if task is not None:
            consolidated = await consolidation.consolidate(task)
            if consolidated.success:
                self._metrics.record_profit(consolidated.net_profit)
            else:
                self._metrics.record_consolidation(consolidated)

        self._check_daily_target(self._clock())
        return result

    def trade_profit(self, result: TradeResult) -> float | None:
        """
        Base-unit value gained by a settled trade, net of the network fee.

        Returns:
            Profit, or None when either side has no price in base units.
        """
        valuator = _ready(self._valuator)
        session = _ready(self._session)
        prices = session.prices
        value_in = valuator.value_in_base(result.input_asset, result.input_amount, prices)
        value_out = valuator.value_in_base(result.output_asset, result.output_amount, prices)
        if value_in is None or value_out is None:
            logger.warning(f"Cannot value {result.pair} in {session.base_asset}")
            return None
        return value_out - value_in - self._settings.network_fee

    def _check_daily_target(self, now: float) -> None:
        ledger = _ready(self._ledger)
        session = _ready(self._session)

        reached = ledger.daily_target_reached(now)
        if reached and not self._settings.aggressive_mode and not self._halted_for_target:
            self._halted_for_target = True
            session.halt(DAILY_TARGET_REASON)
            self._event_bus.emit(
                EventType.TRADING_HALTED,
                {"reason": DAILY_TARGET_REASON, "today_profit": ledger.today_profit},
                source="engine",
            )
        elif not reached and self._halted_for_target:
            self._halted_for_target = False
            session.resume()
            self._event_bus.emit(EventType.TRADING_RESUMED, {"reason": "new day"}, source="engine")

    async def wait_for_trades(self) -> None:
        """Wait for every in-flight trade to finish."""
        if self._trades:
            await asyncio.gather(*list(self._trades), return_exceptions=True)

    # =========================================================================
    # Loops
    # =========================================================================

    async def _sleep(self, seconds: float) -> None:
        """Sleep, waking early on shutdown."""
        try:
            await asyncio.wait_for(self._shutdown_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    async def _periodic(
        self, name: str, interval: float, step: Callable[[], Awaitable[object]]
    ) -> None:
        while not self._shutdown_event.is_set():
            try:
                await step()
            except VenueUnavailableError as e:
                self._fail(e)
                return
            except (VenueError, ValueError) as e:
                logger.warning(f"{name} tick failed: {e}")
            except Exception as e:
                logger.exception(f"{name} loop crashed")
                self._fail(e)
                return
            await self._sleep(interval)

    async def _reset_threshold(self) -> None:
        _ready(self._ledger).reset_threshold()

    async def _report_status(self) -> None:
        _ready(self._reporter).log_status()

    def _fail(self, error: BaseException) -> None:
        if self._fatal_error is None:
            logger.critical(f"Fatal error, shutting down: {error}")
            self._fatal_error = error
        self._shutdown_event.set()

    async def run(self) -> None:
        """
        Run the loops until a shutdown signal or a fatal error.

        Raises:
            VenueUnavailableError: If the venue connection was lost.
        """
        s = self._settings
        self._running = True

        loop = asyncio.get_running_loop()
        installed: list[signal.Signals] = []
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self._handle_shutdown)
                installed.append(sig)
            except (NotImplementedError, RuntimeError):
                logger.debug(f"Signal handler for {sig.name} unavailable")

        loops = [
            asyncio.create_task(self._periodic("price", s.price_interval, self.price_tick)),
            asyncio.create_task(self._periodic("trade", s.trade_interval, self.trade_tick)),
            asyncio.create_task(self._periodic("status", s.status_interval, self._report_status)),
        ]
        if s.threshold_reset_interval > 0:
            loops.append(
                asyncio.create_task(
                    self._periodic(
                        "threshold reset", s.threshold_reset_interval, self._reset_threshold
                    )
                )
            )

        logger.info("Trading loops started")
        try:
            await self._shutdown_event.wait()
            await asyncio.gather(*loops)
            # In-flight trades finish; no new trade starts after shutdown
            await self.wait_for_trades()
        finally:
            self._running = False
            for task in loops:
                task.cancel()
            for sig in installed:
                loop.remove_signal_handler(sig)

        if self._fatal_error is not None:
            raise self._fatal_error

    def _handle_shutdown(self) -> None:
        logger.info("Shutdown signal received")
        self._shutdown_event.set()

    def request_shutdown(self) -> None:
        self._handle_shutdown()

    async def shutdown(self) -> None:
        """Gracefully shut down the engine. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        logger.info("Shutting down engine...")

        self._running = False
        self._shutdown_event.set()
        await self.wait_for_trades()

        self._event_bus.emit(EventType.SHUTDOWN, {"fatal": repr(self._fatal_error)}, source="engine")
        await self._event_bus.drain()

        if self._venue:
            await self._venue.close()

        if self._reporter:
            self._reporter.print_summary()

        self._event_logger.detach()
        logger.info("Engine shutdown complete")

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    @property
    def session(self) -> Session:
        return _ready(self._session)

    @property
    def ledger(self) -> PnLLedger:
        return _ready(self._ledger)

    @property
    def detector(self) -> OpportunityDetector:
        return _ready(self._detector)

    @property
    def gate(self) -> TradeGate:
        return _ready(self._gate)

    @property
    def executor(self) -> TradeExecutor:
        return _ready(self._executor)

    @property
    def fatal_error(self) -> BaseException | None:
        return self._fatal_error


@asynccontextmanager
async def create_engine(
    settings: Settings, venue: Venue | None = None
) -> AsyncIterator[SwapEngine]:
    """
    Create and manage engine lifecycle.

    Usage:
        async with create_engine(settings) as engine:
            await engine.run()
    """
    engine = SwapEngine(settings, venue=venue)

    try:
        await engine.setup()
        yield engine
    finally:
        await engine.shutdown()
