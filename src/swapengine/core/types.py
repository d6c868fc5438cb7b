"""
Type definitions for the swap engine.

This module contains the dataclasses, enums and Protocol definitions
shared by the strategy, execution and ledger layers. Using slots=True for
memory efficiency and faster attribute access.
"""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol


# =============================================================================
# Enums
# =============================================================================


class TradeStage(str, Enum):
    """Stage reached by a trade attempt."""

    QUOTE_REQUESTED = "QUOTE_REQUESTED"
    QUOTE_VALIDATED = "QUOTE_VALIDATED"
    SUBMITTED = "SUBMITTED"
    CONFIRMING = "CONFIRMING"
    SETTLED = "SETTLED"
    FAILED = "FAILED"


class TxStatus(str, Enum):
    """On-chain transaction status reported by the venue."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    FAILED = "FAILED"


class AssetClass(str, Enum):
    """Risk class of an asset."""

    BASE = "BASE"
    STABLE = "STABLE"
    MAJOR = "MAJOR"
    VOLATILE = "VOLATILE"
    UNKNOWN = "UNKNOWN"


# =============================================================================
# Market Data
# =============================================================================


@dataclass(slots=True, frozen=True)
class TradingPair:
    """
    Ordered asset pair traded from `base` into `quote`.

    The pair price is expressed as quote units per base unit,
    i.e. output received per unit of input.
    """

    base: str
    quote: str

    @classmethod
    def parse(cls, name: str) -> "TradingPair":
        """
        Parse a pair from its "BASE/QUOTE" name.

        Raises:
            ValueError: If the name is not two non-empty distinct assets.
        """
        parts = [part.strip() for part in name.split("/")]
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise ValueError(f"Invalid pair name: {name!r}")
        if parts[0] == parts[1]:
            raise ValueError(f"Pair assets must differ: {name!r}")
        return cls(parts[0], parts[1])

    @property
    def name(self) -> str:
        return f"{self.base}/{self.quote}"

    def __str__(self) -> str:
        return self.name


@dataclass(slots=True, frozen=True)
class PricePoint:
    """Single price sample."""

    price: float
    timestamp: float


@dataclass(slots=True)
class PriceMovementWindow:
    """Rolling movement state for one pair."""

    pair: TradingPair
    history: deque[PricePoint]
    last_price: float = 0.0
    short_term: float = 0.0
    volatility: float = 0.0
    direction: int = 0
    last_signal_time: float = float("-inf")

    @property
    def sample_count(self) -> int:
        return len(self.history)


# =============================================================================
# Strategy
# =============================================================================


@dataclass(slots=True)
class Opportunity:
    """A detected, sized and scored candidate trade."""

    pair: TradingPair
    observed_price: float
    percent_change: float
    medium_term_change: float
    suggested_amount: float
    estimated_fee_percent: float
    potential_profit: float
    confidence: float
    accelerating: bool
    high_value: bool
    timestamp: float

    @property
    def input_asset(self) -> str:
        return self.pair.base

    @property
    def output_asset(self) -> str:
        return self.pair.quote

    @property
    def score(self) -> float:
        """Ranking score used to order opportunities within a scan."""
        return self.confidence * self.potential_profit


@dataclass(slots=True, frozen=True)
class SlippageBudget:
    """Slippage tolerance requested from the venue for one trade."""

    tolerance_bps: int
    required_profit_fraction: float

    @property
    def tolerance_pct(self) -> float:
        return self.tolerance_bps / 100.0

    @property
    def min_required_profit_pct(self) -> float:
        return self.tolerance_pct * self.required_profit_fraction


# =============================================================================
# Execution
# =============================================================================


@dataclass(slots=True, frozen=True)
class Quote:
    """Swap quote returned by the quote service."""

    input_asset: str
    output_asset: str
    input_amount: float
    output_amount: float
    slippage_bps: int
    route: tuple[str, ...] = ()
    price_impact_pct: float = 0.0
    quote_id: str = ""

    @property
    def implied_price(self) -> float:
        """Output received per unit of input."""
        if self.input_amount <= 0:
            return 0.0
        return self.output_amount / self.input_amount


@dataclass(slots=True, frozen=True)
class SignedIntent:
    """A quote bound to an account and signed once for submission."""

    quote: Quote
    account: str
    signature: str
    timestamp: float


@dataclass(slots=True, frozen=True)
class TransactionStatus:
    """Status of a submitted transaction."""

    status: TxStatus
    error: str = ""

    @property
    def is_final(self) -> bool:
        return self.status != TxStatus.PENDING


@dataclass(slots=True)
class TradeResult:
    """Outcome of one trade attempt. Success is all-or-nothing."""

    success: bool
    input_asset: str
    output_asset: str
    input_amount: float
    output_amount: float = 0.0
    tx_id: str | None = None
    stage: TradeStage = TradeStage.FAILED
    confirmed: bool = False
    error: str = ""
    pair: str = ""
    start_timestamp_us: int = 0
    end_timestamp_us: int = 0

    @property
    def latency_us(self) -> int:
        return self.end_timestamp_us - self.start_timestamp_us

    @property
    def is_indeterminate(self) -> bool:
        """Settled without a definitive confirmation."""
        return self.success and not self.confirmed


@dataclass(slots=True)
class ConsolidationTask:
    """Pending sweep of a non-base balance back into the base asset."""

    asset: str
    amount: float
    attempts_remaining: int


@dataclass(slots=True)
class ConsolidationResult:
    """Outcome of a consolidation task."""

    asset: str
    success: bool
    input_amount: float
    output_amount: float = 0.0
    attempts: int = 0
    tx_id: str | None = None
    net_profit: float = 0.0
    error: str = ""


# =============================================================================
# Ledger
# =============================================================================


@dataclass(slots=True, frozen=True)
class PnLRecord:
    """Realized profit in base units."""

    amount_base: float
    timestamp: float


@dataclass(slots=True)
class TradeRecord:
    """Summary of a settled trade kept for reporting."""

    pair: str
    input_amount: float
    output_amount: float
    profit_base: float
    confirmed: bool
    tx_id: str | None
    timestamp: float = field(default=0.0)


# =============================================================================
# Protocols (Interfaces)
# =============================================================================


class PriceFeed(Protocol):
    """Supplies the current price of each requested pair."""

    async def get_prices(self, pairs: list[TradingPair]) -> dict[str, float]:
        """Return pair name -> price for every pair with a live price."""
        ...


class QuoteService(Protocol):
    """Idempotent, side-effect-free swap quoting."""

    async def get_quote(
        self,
        input_asset: str,
        output_asset: str,
        amount: float,
        slippage_bps: int,
    ) -> Quote:
        ...


class ExecutionVenue(Protocol):
    """Submits signed swaps and reports their status."""

    async def submit(self, intent: SignedIntent) -> str:
        """Submit a signed intent, returning the transaction id."""
        ...

    async def get_status(self, tx_id: str) -> TransactionStatus:
        ...

    async def wait_for_confirmation(self, tx_id: str) -> TransactionStatus:
        """Block until the venue reports a final status."""
        ...


class BalanceSource(Protocol):
    """Authoritative account balances."""

    async def get_balances(self, account: str) -> dict[str, float]:
        ...


class Signer(Protocol):
    """Signs swap quotes on behalf of the trading account."""

    @property
    def account(self) -> str:
        ...

    def sign(self, quote: Quote) -> SignedIntent:
        ...


class Venue(PriceFeed, QuoteService, ExecutionVenue, BalanceSource, Protocol):
    """A venue that implements every consumed interface."""

    async def close(self) -> None:
        ...
