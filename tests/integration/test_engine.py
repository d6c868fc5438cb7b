"""
Integration tests for the main engine.

Drives the price and trade ticks directly against the mock venue.
"""

import asyncio
from typing import Any

import pytest

from swapengine.config.settings import Settings
from swapengine.core.engine import SwapEngine, create_engine
from swapengine.core.event_bus import Event, EventType
from swapengine.core.types import TradingPair
from swapengine.venue.client import VenueUnavailableError
from tests.mocks import MockVenue


# 2023-11-14 22:13:20 UTC
T0 = 1_700_000_000.0


def make_settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "wallet_address": "TestAccount111",
        "wallet_secret": "test-secret",
        "trading_pairs": ["SOL/USDC"],
        "high_value_pairs": ["SOL/USDC"],
        "reference_pairs": ["SOL/USDC"],
        "dry_run": False,
        "pnl_store_path": None,
        "min_trade_interval": 0.0,
        "retry_base_delay": 0.0,
        "confirmation_timeout": 1.0,
        "status_poll_interval": 0.0,
        "price_interval": 0.01,
        "trade_interval": 0.01,
        "status_interval": 0.05,
        "use_uvloop": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)  # type: ignore[arg-type]


@pytest.fixture
def venue() -> MockVenue:
    return MockVenue(balances={"SOL": 10.0}, prices={"SOL/USDC": 100.0})


async def build_engine(venue: MockVenue, **overrides: object) -> SwapEngine:
    engine = SwapEngine(make_settings(**overrides), venue=venue, clock=lambda: T0)
    await engine.setup()
    return engine


async def warm_up(engine: SwapEngine, samples: int = 5) -> None:
    """Feed a flat SOL/USDC history."""
    for i in range(samples):
        await engine.price_tick(now=T0 + i)


class TestEngineSetup:
    """Tests for engine initialization."""

    @pytest.mark.asyncio
    async def test_loads_balances(self, venue: MockVenue) -> None:
        engine = await build_engine(venue)

        assert engine.session.balance("SOL") == 10.0
        assert engine.session.account == "TestAccount111"
        assert engine.ledger.threshold.value == 0.05
        assert venue.balance_calls == 1

    @pytest.mark.asyncio
    async def test_settings_reach_components(self, venue: MockVenue) -> None:
        """Test that setup maps settings onto the gate and ledger."""
        engine = await build_engine(
            venue, max_concurrent_trades=1, min_movement_threshold=0.08
        )

        engine.gate.acquire(T0)

        assert not engine.gate.check(T0 + 100)
        assert engine.ledger.threshold.value == 0.08
        assert engine.detector.threshold == 0.08

    @pytest.mark.asyncio
    async def test_not_set_up(self, venue: MockVenue) -> None:
        engine = SwapEngine(make_settings(), venue=venue)

        with pytest.raises(RuntimeError, match="not set up"):
            await engine.price_tick(now=T0)

    @pytest.mark.asyncio
    async def test_price_tick_feeds_history(self, venue: MockVenue) -> None:
        engine = await build_engine(venue)

        assert await engine.price_tick(now=T0) == 1
        assert engine.session.prices == {"SOL/USDC": 100.0}
        assert engine.detector.tracker.sample_count(TradingPair("SOL", "USDC")) == 1

    @pytest.mark.asyncio
    async def test_create_engine_closes_venue(self, venue: MockVenue) -> None:
        async with create_engine(make_settings(), venue=venue) as engine:
            assert engine.session.balance("SOL") == 10.0

        assert venue.closed


class TestTradeCycle:
    """Tests for detect -> validate -> execute -> consolidate -> adapt."""

    @pytest.mark.asyncio
    async def test_full_cycle(self, venue: MockVenue) -> None:
        """Test a 3% SOL/USDC jump traded and swept back into SOL."""
        engine = await build_engine(venue)
        await warm_up(engine)
        venue.prices["SOL/USDC"] = 103.0

        tasks = await engine.trade_tick(now=T0 + 10)
        assert len(tasks) == 1
        await engine.wait_for_trades()

        result = tasks[0].result()
        assert result.success
        assert result.output_amount == pytest.approx(14.42)

        # Trade plus sweep
        assert venue.quote_slippages == [90, 100]
        assert venue.balances["USDC"] == pytest.approx(14.42 - 13.699)
        assert engine.session.balance("SOL") == pytest.approx(9.86 + 13.699 / 103)

        # Two non-positive updates raise the threshold twice
        assert engine.ledger.threshold.value == pytest.approx(0.0605)
        assert len(engine.ledger.trades) == 1
        assert engine.ledger.trades[0].pair == "SOL/USDC"

        stats = engine.metrics.trading_stats
        assert stats.opportunities_detected == 1
        assert stats.trades_settled == 2
        assert stats.consolidations_completed == 1
        assert engine.gate.active_trades == 0

    @pytest.mark.asyncio
    async def test_flat_prices_trade_nothing(self, venue: MockVenue) -> None:
        engine = await build_engine(venue)
        await warm_up(engine)

        assert await engine.trade_tick(now=T0 + 10) == []
        assert venue.quote_calls == 0

    @pytest.mark.asyncio
    async def test_gate_cooldown_blocks_trade(self, venue: MockVenue) -> None:
        engine = await build_engine(venue, min_trade_interval=60.0)
        engine.gate.acquire(T0 + 5)
        engine.gate.release()
        await warm_up(engine)
        venue.prices["SOL/USDC"] = 103.0

        assert await engine.trade_tick(now=T0 + 10) == []
        assert engine.metrics.get_counter("rejected_gate") == 1

    @pytest.mark.asyncio
    async def test_trade_profit(self, venue: MockVenue) -> None:
        engine = await build_engine(venue)
        await warm_up(engine)
        venue.prices["SOL/USDC"] = 103.0
        tasks = await engine.trade_tick(now=T0 + 10)
        await engine.wait_for_trades()

        # Output valued at the post-move price nets only the fee
        assert engine.trade_profit(tasks[0].result()) == pytest.approx(-0.000005)


class TestDailyTarget:
    """Tests for the daily profit target halt."""

    @pytest.mark.asyncio
    async def test_halts_and_resumes_next_day(self, venue: MockVenue) -> None:
        engine = await build_engine(venue, daily_profit_target=0.5)
        halted: list[Event[Any]] = []
        resumed: list[Event[Any]] = []
        engine.event_bus.subscribe_sync(EventType.TRADING_HALTED, halted.append)
        engine.event_bus.subscribe_sync(EventType.TRADING_RESUMED, resumed.append)
        engine.ledger.record(1.0, T0)

        assert await engine.trade_tick(now=T0 + 1) == []
        assert not engine.session.trading_enabled
        assert len(halted) == 1
        assert venue.quote_calls == 0

        await engine.trade_tick(now=T0 + 86400)
        assert engine.session.trading_enabled
        assert len(resumed) == 1

    @pytest.mark.asyncio
    async def test_aggressive_mode_keeps_trading(self, venue: MockVenue) -> None:
        engine = await build_engine(venue, daily_profit_target=0.5, aggressive_mode=True)
        engine.ledger.record(1.0, T0)

        await engine.trade_tick(now=T0 + 1)

        assert engine.session.trading_enabled


class TestEngineRun:
    """Tests for the run loop and shutdown."""

    @pytest.mark.asyncio
    async def test_shutdown_request_stops_loops(self, venue: MockVenue) -> None:
        engine = await build_engine(venue)

        task = asyncio.create_task(engine.run())
        await asyncio.sleep(0.05)
        assert engine.is_running

        engine.request_shutdown()
        await asyncio.wait_for(task, timeout=2.0)

        assert not engine.is_running
        assert engine.fatal_error is None
        await engine.shutdown()
        assert venue.closed

    @pytest.mark.asyncio
    async def test_venue_loss_is_fatal(self, venue: MockVenue) -> None:
        engine = await build_engine(venue)
        venue.unavailable = True

        with pytest.raises(VenueUnavailableError):
            await asyncio.wait_for(engine.run(), timeout=2.0)

        assert isinstance(engine.fatal_error, VenueUnavailableError)
        await engine.shutdown()

    @pytest.mark.asyncio
    async def test_shutdown_idempotent(self, venue: MockVenue) -> None:
        engine = await build_engine(venue)
        shutdowns: list[Event[Any]] = []
        engine.event_bus.subscribe_sync(EventType.SHUTDOWN, shutdowns.append)

        await engine.shutdown()
        await engine.shutdown()

        assert len(shutdowns) == 1
