"""Core module containing the engine, session, event bus and type definitions."""

from swapengine.core.event_bus import Event, EventBus, EventType
from swapengine.core.types import (
    AssetClass,
    ConsolidationResult,
    ConsolidationTask,
    Opportunity,
    PnLRecord,
    PriceMovementWindow,
    PricePoint,
    Quote,
    SignedIntent,
    SlippageBudget,
    TradeResult,
    TradeStage,
    TradingPair,
    TransactionStatus,
    TxStatus,
)


__all__ = [
    "AssetClass",
    "ConsolidationResult",
    "ConsolidationTask",
    "Event",
    "EventBus",
    "EventType",
    "Opportunity",
    "PnLRecord",
    "PriceMovementWindow",
    "PricePoint",
    "Quote",
    "SignedIntent",
    "SlippageBudget",
    "TradeResult",
    "TradeStage",
    "TradingPair",
    "TransactionStatus",
    "TxStatus",
]
