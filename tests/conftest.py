"""
Pytest configuration and shared fixtures.

Provides reusable test fixtures for all test modules.
"""

import pytest

from swapengine.core.event_bus import EventBus
from swapengine.core.session import Session
from swapengine.core.types import Opportunity, TradingPair
from swapengine.execution.executor import ExecutorConfig, TradeExecutor
from swapengine.execution.signer import IntentSigner
from swapengine.ledger.pnl import AdaptiveThreshold, PnLLedger
from swapengine.strategy.opportunity import DetectorConfig, OpportunityDetector
from swapengine.strategy.valuation import AssetClassifier, AssetValuator
from tests.mocks.venue import MockVenue


# =============================================================================
# Pairs & Assets
# =============================================================================


@pytest.fixture
def sol_usdc() -> TradingPair:
    return TradingPair("SOL", "USDC")


@pytest.fixture
def classifier() -> AssetClassifier:
    """Classifier with SOL as base asset."""
    return AssetClassifier(
        "SOL",
        stable_assets=("USDC", "USDT"),
        major_assets=("BTC", "ETH", "mSOL"),
        volatile_assets=("BONK", "SAMO", "JTO"),
    )


@pytest.fixture
def valuator() -> AssetValuator:
    return AssetValuator("SOL")


# =============================================================================
# Strategy Fixtures
# =============================================================================


@pytest.fixture
def threshold() -> AdaptiveThreshold:
    """Threshold at 0.05% in [0.03, 0.5]."""
    return AdaptiveThreshold(0.05, 0.03, 0.5)


@pytest.fixture
def detector(
    sol_usdc: TradingPair,
    threshold: AdaptiveThreshold,
    classifier: AssetClassifier,
) -> OpportunityDetector:
    """Detector tracking SOL/USDC as a high-value pair."""
    config = DetectorConfig(
        pairs=[sol_usdc],
        high_value_pairs=frozenset({"SOL/USDC"}),
        reference_pairs=("SOL/USDC", "SOL/USDT", "SOL/mSOL"),
    )
    return OpportunityDetector(config, threshold, classifier)


@pytest.fixture
def opportunity(sol_usdc: TradingPair) -> Opportunity:
    """A strong SOL -> USDC opportunity observed at 103."""
    return Opportunity(
        pair=sol_usdc,
        observed_price=103.0,
        percent_change=3.0,
        medium_term_change=3.0,
        suggested_amount=0.14,
        estimated_fee_percent=0.0036,
        potential_profit=0.0075,
        confidence=80.5,
        accelerating=True,
        high_value=True,
        timestamp=1000.0,
    )


# =============================================================================
# Execution Fixtures
# =============================================================================


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def signer() -> IntentSigner:
    return IntentSigner("TestAccount111", "test-secret")


@pytest.fixture
def mock_venue() -> MockVenue:
    """Venue holding 10 SOL with SOL/USDC at 103."""
    return MockVenue(balances={"SOL": 10.0}, prices={"SOL/USDC": 103.0})


@pytest.fixture
def session(signer: IntentSigner, threshold: AdaptiveThreshold) -> Session:
    session = Session(signer=signer, base_asset="SOL", threshold=threshold)
    session.replace_balances({"SOL": 10.0})
    session.replace_prices({"SOL/USDC": 103.0})
    return session


@pytest.fixture
def fast_executor_config() -> ExecutorConfig:
    """Executor configuration without real sleeps."""
    return ExecutorConfig(
        retry_base_delay=0.0,
        confirmation_timeout=0.5,
        status_poll_attempts=3,
        status_poll_interval=0.0,
    )


@pytest.fixture
def executor(
    mock_venue: MockVenue,
    session: Session,
    fast_executor_config: ExecutorConfig,
    event_bus: EventBus,
) -> TradeExecutor:
    return TradeExecutor(
        quotes=mock_venue,
        venue=mock_venue,
        balances=mock_venue,
        session=session,
        config=fast_executor_config,
        event_bus=event_bus,
    )


@pytest.fixture
def ledger(threshold: AdaptiveThreshold, event_bus: EventBus) -> PnLLedger:
    return PnLLedger(threshold, event_bus=event_bus)
