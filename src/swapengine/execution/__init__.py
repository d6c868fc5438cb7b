"""Execution module: risk gating, trade execution and consolidation."""

from swapengine.execution.consolidation import ConsolidationConfig, ConsolidationManager
from swapengine.execution.executor import ExecutorConfig, QuoteRejectedError, TradeExecutor
from swapengine.execution.retry import RetryExhaustedError, RetryPolicy, retry_async
from swapengine.execution.risk import (
    GateConfig,
    RiskConfig,
    RiskValidator,
    SlippagePolicy,
    TradeGate,
    ValidationResult,
)
from swapengine.execution.signer import IntentSigner


__all__ = [
    "ConsolidationConfig",
    "ConsolidationManager",
    "ExecutorConfig",
    "GateConfig",
    "IntentSigner",
    "QuoteRejectedError",
    "RetryExhaustedError",
    "RetryPolicy",
    "RiskConfig",
    "RiskValidator",
    "SlippagePolicy",
    "TradeExecutor",
    "TradeGate",
    "ValidationResult",
    "retry_async",
]
