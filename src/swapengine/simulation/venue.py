"""
Simulated swap venue for dry-run mode.

Generates random-walk asset prices with occasional momentum bursts, and
settles swaps against an in-memory balance book, so the whole engine can
run without credentials or real funds.
"""

import logging
import random
import uuid
from dataclasses import dataclass, field

from swapengine.core.types import (
    Quote,
    SignedIntent,
    TradingPair,
    TransactionStatus,
    TxStatus,
)
from swapengine.venue.client import VenueAPIError


logger = logging.getLogger(__name__)


@dataclass
class SimulatedAsset:
    """Random-walk configuration of one asset."""

    symbol: str
    usd_price: float
    volatility: float = 0.002  # per tick
    current_price: float = field(init=False)

    def __post_init__(self) -> None:
        self.current_price = self.usd_price


class SimulatedVenue:
    """
    In-memory venue implementing every consumed interface.

    Features:
    - Gaussian random walk with mean reversion
    - Occasional momentum bursts on a random asset
    - Quotes with swap fee and size-dependent price impact
    - Immediate settlement with configurable failure rate
    """

    DEFAULT_ASSETS = [
        SimulatedAsset("SOL", 150.0, 0.002),
        SimulatedAsset("USDC", 1.0, 0.0001),
        SimulatedAsset("USDT", 1.0, 0.0001),
        SimulatedAsset("mSOL", 165.0, 0.002),
        SimulatedAsset("BTC", 65000.0, 0.0015),
        SimulatedAsset("ETH", 3500.0, 0.002),
        SimulatedAsset("JTO", 3.0, 0.004),
        SimulatedAsset("BONK", 0.00002, 0.006),
        SimulatedAsset("SAMO", 0.01, 0.006),
    ]

    def __init__(
        self,
        balances: dict[str, float] | None = None,
        assets: list[SimulatedAsset] | None = None,
        swap_fee_pct: float = 0.05,
        burst_frequency: float = 0.1,
        burst_range: tuple[float, float] = (0.005, 0.03),
        failure_rate: float = 0.0,
        seed: int | None = None,
    ) -> None:
        """
        Initialize simulated venue.

        Args:
            balances: Starting balances of the simulated account.
            assets: Assets to simulate (default: common Solana tokens).
            swap_fee_pct: Fee deducted from every quote, in percent.
            burst_frequency: Probability of a momentum burst per tick.
            burst_range: Min/max relative size of a burst.
            failure_rate: Probability that a submitted swap fails on chain.
            seed: Random seed for reproducible runs.
        """
        template = assets or self.DEFAULT_ASSETS
        self._assets = {
            a.symbol: SimulatedAsset(a.symbol, a.usd_price, a.volatility) for a in template
        }
        self._balances: dict[str, float] = dict(balances or {})
        self._swap_fee_pct = swap_fee_pct
        self._burst_frequency = burst_frequency
        self._burst_range = burst_range
        self._failure_rate = failure_rate
        self._random = random.Random(seed)

        self._transactions: dict[str, TransactionStatus] = {}
        self._tick_count = 0
        self._bursts = 0

    def _tick(self) -> None:
        self._tick_count += 1

        for asset in self._assets.values():
            shock = self._random.gauss(0, asset.volatility)
            reversion = (asset.usd_price - asset.current_price) / asset.usd_price * 0.05
            asset.current_price *= 1 + shock + reversion

        if self._random.random() < self._burst_frequency:
            asset = self._random.choice(list(self._assets.values()))
            move = self._random.uniform(*self._burst_range) * self._random.choice((-1, 1))
            asset.current_price *= 1 + move
            self._bursts += 1
            logger.debug(f"Simulated burst on {asset.symbol}: {move * 100:+.2f}%")

    def _pair_price(self, base: str, quote: str) -> float | None:
        base_asset = self._assets.get(base)
        quote_asset = self._assets.get(quote)
        if base_asset is None or quote_asset is None:
            return None
        return base_asset.current_price / quote_asset.current_price

    # =========================================================================
    # Price Feed
    # =========================================================================

    async def get_prices(self, pairs: list[TradingPair]) -> dict[str, float]:
        """Advance the simulation one tick and price every known pair."""
        self._tick()
        prices: dict[str, float] = {}
        for pair in pairs:
            price = self._pair_price(pair.base, pair.quote)
            if price is not None:
                prices[pair.name] = price
        return prices

    # =========================================================================
    # Quote Service
    # =========================================================================

    async def get_quote(
        self,
        input_asset: str,
        output_asset: str,
        amount: float,
        slippage_bps: int,
    ) -> Quote:
        price = self._pair_price(input_asset, output_asset)
        if price is None:
            raise VenueAPIError(f"No route for {input_asset}/{output_asset}", code=400)

        notional_usd = amount * self._assets[input_asset].current_price
        impact_pct = min(notional_usd / 1_000_000 * 100, 5.0)
        output = amount * price * (1 - self._swap_fee_pct / 100) * (1 - impact_pct / 100)

        return Quote(
            input_asset=input_asset,
            output_asset=output_asset,
            input_amount=amount,
            output_amount=output,
            slippage_bps=slippage_bps,
            route=("simulated",),
            price_impact_pct=impact_pct,
            quote_id=uuid.uuid4().hex,
        )

    # =========================================================================
    # Execution Venue
    # =========================================================================

    async def submit(self, intent: SignedIntent) -> str:
        """Settle a swap immediately against the simulated balances."""
        quote = intent.quote
        available = self._balances.get(quote.input_asset, 0.0)
        if available < quote.input_amount:
            raise VenueAPIError(
                f"Insufficient {quote.input_asset}: {available:.6f} < {quote.input_amount:.6f}",
                code=400,
            )

        tx_id = f"sim-{uuid.uuid4().hex[:16]}"
        if self._random.random() < self._failure_rate:
            self._transactions[tx_id] = TransactionStatus(TxStatus.FAILED, "simulated failure")
            return tx_id

        # Fill anywhere inside the quoted slippage band
        fill = self._random.uniform(1 - quote.slippage_bps / 20_000, 1.0)
        self._balances[quote.input_asset] = available - quote.input_amount
        self._balances[quote.output_asset] = (
            self._balances.get(quote.output_asset, 0.0) + quote.output_amount * fill
        )
        self._transactions[tx_id] = TransactionStatus(TxStatus.CONFIRMED)
        return tx_id

    async def get_status(self, tx_id: str) -> TransactionStatus:
        status = self._transactions.get(tx_id)
        if status is None:
            raise VenueAPIError(f"Unknown transaction {tx_id}", code=404)
        return status

    async def wait_for_confirmation(self, tx_id: str) -> TransactionStatus:
        return await self.get_status(tx_id)

    # =========================================================================
    # Balance Source
    # =========================================================================

    async def get_balances(self, account: str) -> dict[str, float]:
        return dict(self._balances)

    async def close(self) -> None:
        logger.debug(f"Simulated venue closed after {self._tick_count} ticks, {self._bursts} bursts")

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def bursts(self) -> int:
        return self._bursts
