"""
Trading session state.

One Session is owned by the engine and passed by reference to the
components that need it. Balances and prices are replaced wholesale from
the authoritative source, never computed incrementally.
"""

import logging
from dataclasses import dataclass, field

from swapengine.config.settings import ConfigurationError
from swapengine.core.types import Signer
from swapengine.ledger.pnl import AdaptiveThreshold


logger = logging.getLogger(__name__)


@dataclass
class Session:
    """Shared mutable state of a running engine."""

    signer: Signer
    base_asset: str
    threshold: AdaptiveThreshold
    balances: dict[str, float] = field(default_factory=dict)
    prices: dict[str, float] = field(default_factory=dict)
    trading_enabled: bool = True
    halt_reason: str = ""

    def __post_init__(self) -> None:
        if self.signer is None:
            raise ConfigurationError("A signer is required to start a trading session")

    @property
    def account(self) -> str:
        return self.signer.account

    def balance(self, asset: str) -> float:
        """Get the last known balance of an asset."""
        return self.balances.get(asset, 0.0)

    def replace_balances(self, balances: dict[str, float]) -> None:
        """Replace the balance map with a fresh authoritative snapshot."""
        self.balances = dict(balances)

    def replace_prices(self, prices: dict[str, float]) -> None:
        """Replace the price map with the latest feed snapshot."""
        self.prices = dict(prices)

    def halt(self, reason: str) -> None:
        """Stop starting new trades."""
        if self.trading_enabled:
            logger.warning(f"Trading halted: {reason}")
        self.trading_enabled = False
        self.halt_reason = reason

    def resume(self) -> None:
        """Allow new trades again."""
        if not self.trading_enabled:
            logger.info(f"Trading resumed (was halted: {self.halt_reason})")
        self.trading_enabled = True
        self.halt_reason = ""
