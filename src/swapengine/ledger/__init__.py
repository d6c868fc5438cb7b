"""Profit ledger, adaptive threshold and persistence."""

from swapengine.ledger.pnl import AdaptiveThreshold, LedgerConfig, PnLLedger, ThresholdChange
from swapengine.ledger.store import PnLEntry, PnLStore


__all__ = [
    "AdaptiveThreshold",
    "LedgerConfig",
    "PnLEntry",
    "PnLLedger",
    "PnLStore",
    "ThresholdChange",
]
