"""
Trading constants and configuration defaults.

This module contains every numeric default used by the swap engine.
Values are organized by component so thresholds, fractions and retry
budgets can be audited in one place.
"""

from typing import Final


# =============================================================================
# Venue Endpoints
# =============================================================================

DEFAULT_VENUE_URL: Final[str] = "https://quote-api.jup.ag"

ENDPOINT_PRICE: Final[str] = "/v6/price"
ENDPOINT_QUOTE: Final[str] = "/v6/quote"
ENDPOINT_SWAP: Final[str] = "/v6/swap"
ENDPOINT_TX_STATUS: Final[str] = "/v6/tx/{tx_id}"
ENDPOINT_TX_CONFIRM: Final[str] = "/v6/tx/{tx_id}/confirm"
ENDPOINT_BALANCES: Final[str] = "/v6/balances/{account}"

# Consecutive connection failures before the venue is declared unavailable
MAX_CONNECTION_FAILURES: Final[int] = 5

REQUESTS_PER_SECOND: Final[int] = 10
SUBMISSIONS_PER_SECOND: Final[int] = 2


# =============================================================================
# Assets & Pairs
# =============================================================================

DEFAULT_BASE_ASSET: Final[str] = "SOL"

DEFAULT_TRADING_PAIRS: Final[tuple[str, ...]] = (
    "SOL/USDC",
    "SOL/USDT",
    "USDC/SOL",
    "USDT/SOL",
    "mSOL/SOL",
    "SOL/mSOL",
    "JTO/SOL",
    "BONK/SOL",
)

# Pairs allowed to fire on acceleration alone
DEFAULT_HIGH_VALUE_PAIRS: Final[tuple[str, ...]] = (
    "SOL/USDC",
    "SOL/USDT",
    "USDC/SOL",
    "USDT/SOL",
)

# Pairs whose direction indicates a base-asset downtrend
DEFAULT_REFERENCE_PAIRS: Final[tuple[str, ...]] = ("SOL/USDC", "SOL/USDT", "SOL/mSOL")

DEFAULT_STABLE_ASSETS: Final[tuple[str, ...]] = ("USDC", "USDT")
DEFAULT_MAJOR_ASSETS: Final[tuple[str, ...]] = ("BTC", "ETH", "mSOL")
DEFAULT_VOLATILE_ASSETS: Final[tuple[str, ...]] = ("BONK", "SAMO", "JTO")


# =============================================================================
# Price History
# =============================================================================

PRICE_HISTORY_SIZE: Final[int] = 20
MEDIUM_TERM_LOOKBACK: Final[int] = 5
LONG_TERM_LOOKBACK: Final[int] = 15


# =============================================================================
# Opportunity Detection
# =============================================================================

SCAN_THROTTLE_SECONDS: Final[float] = 2.0
SIGNAL_DEBOUNCE_SECONDS: Final[float] = 10.0
# Movement that bypasses the debounce window (percent)
DEBOUNCE_BYPASS_MOVEMENT: Final[float] = 0.2

DOWNTREND_DIRECTION: Final[float] = -0.3
DOWNTREND_MIN_PAIRS: Final[int] = 2
DOWNTREND_OVERRIDE_MOVEMENT: Final[float] = 0.8

# Volatility multiplier steps (movement percent -> multiplier)
VOLATILITY_STEP_MEDIUM: Final[float] = 0.3
VOLATILITY_STEP_HIGH: Final[float] = 0.5
VOLATILITY_MULT_MEDIUM: Final[float] = 1.5
VOLATILITY_MULT_HIGH: Final[float] = 2.0

# Position sizing
BASE_UNIT_SIZE: Final[float] = 0.07
BASE_BALANCE_FRACTION: Final[float] = 0.3
STABLE_UNIT_SIZE: Final[float] = 5.0
STABLE_BALANCE_FRACTION: Final[float] = 0.4
OTHER_BALANCE_FRACTION: Final[float] = 0.3
OTHER_UNIT_FRACTION: Final[float] = 0.1
DEFAULT_MIN_TRADE_SIZE: Final[float] = 0.05

# Potential profit factors
ACCELERATION_FACTOR: Final[float] = 1.5
HIGH_VALUE_FACTOR: Final[float] = 1.2
PROFIT_DUST_FLOOR: Final[float] = 0.0001

# Fixed network fee per transaction in base units
DEFAULT_NETWORK_FEE: Final[float] = 0.000005

# Filters
MIN_CONFIDENCE: Final[float] = 50.0
MIN_CONFIDENCE_BASE_INPUT: Final[float] = 65.0
MIN_POTENTIAL_PROFIT: Final[float] = 0.001
MAX_OPPORTUNITIES_PER_SCAN: Final[int] = 2


# =============================================================================
# Confidence Scoring
# =============================================================================

CONFIDENCE_MIN: Final[float] = 10.0
CONFIDENCE_MAX: Final[float] = 95.0
MOVEMENT_CONFIDENCE_SCALE: Final[float] = 15.0
MOVEMENT_CONFIDENCE_CAP: Final[float] = 40.0
ACCELERATION_BONUS: Final[float] = 15.0
SUCCESS_RATE_WEIGHT: Final[float] = 30.0
CONTRADICTION_PENALTY: Final[float] = 15.0
CONTRADICTION_MIN_MOVEMENT: Final[float] = 0.1

DEFAULT_SUCCESS_RATES: Final[dict[str, float]] = {
    "SOL/USDC": 0.85,
    "SOL/USDT": 0.82,
    "USDC/SOL": 0.80,
    "USDT/SOL": 0.78,
    "mSOL/SOL": 0.75,
    "SOL/mSOL": 0.72,
}
FALLBACK_SUCCESS_RATE: Final[float] = 0.6
SUCCESS_RATE_MIN: Final[float] = 0.3
SUCCESS_RATE_MAX: Final[float] = 0.95
MIN_TRADES_FOR_RATE: Final[int] = 5


# =============================================================================
# Risk Validation & Slippage
# =============================================================================

GROSS_PROFIT_HAIRCUT: Final[float] = 0.9
FEE_BUFFER: Final[float] = 1.5

PROFIT_FRACTION_BASE: Final[float] = 0.75
PROFIT_FRACTION_STABLE: Final[float] = 0.70
PROFIT_FRACTION_MAJOR: Final[float] = 0.75
PROFIT_FRACTION_VOLATILE: Final[float] = 0.90
PROFIT_FRACTION_UNKNOWN: Final[float] = 0.80

DEFAULT_PROFIT_FRACTION_OVERRIDES: Final[dict[str, float]] = {"JTO": 0.85}

DEFAULT_BASE_SLIPPAGE_BPS: Final[int] = 100
DEFAULT_MAX_SLIPPAGE_BPS: Final[int] = 1000

SLIPPAGE_MODIFIER_BASE: Final[float] = 1.0
SLIPPAGE_MODIFIER_STABLE: Final[float] = 0.5
SLIPPAGE_MODIFIER_MAJOR: Final[float] = 1.5
SLIPPAGE_MODIFIER_VOLATILE: Final[float] = 3.0
SLIPPAGE_MODIFIER_UNKNOWN: Final[float] = 1.5

DEFAULT_SLIPPAGE_OVERRIDES: Final[dict[str, float]] = {"JTO": 2.0}

LOW_CONFIDENCE_TIER: Final[float] = 70.0
HIGH_CONFIDENCE_TIER: Final[float] = 85.0
LOW_CONFIDENCE_SCALE: Final[float] = 0.7
MID_CONFIDENCE_SCALE: Final[float] = 0.9


# =============================================================================
# Execution
# =============================================================================

QUOTE_ATTEMPTS: Final[int] = 3
SUBMIT_ATTEMPTS: Final[int] = 3
RETRY_BASE_DELAY: Final[float] = 1.0  # seconds

CONFIRMATION_TIMEOUT: Final[float] = 30.0  # seconds
STATUS_POLL_ATTEMPTS: Final[int] = 10
STATUS_POLL_INTERVAL: Final[float] = 2.0  # seconds

DEFAULT_MAX_PRICE_DEVIATION_PCT: Final[float] = 10.0

DEFAULT_MIN_TRADE_INTERVAL: Final[float] = 5.0  # seconds
DEFAULT_MAX_CONCURRENT_TRADES: Final[int] = 3


# =============================================================================
# Consolidation
# =============================================================================

CONSOLIDATION_DUST_FLOOR: Final[float] = 0.005
CONSOLIDATION_SWEEP_FRACTION: Final[float] = 0.95
CONSOLIDATION_ATTEMPTS: Final[int] = 3
CONSOLIDATION_SLIPPAGE_STEP_BPS: Final[int] = 150


# =============================================================================
# PnL Ledger & Adaptive Threshold
# =============================================================================

PNL_RETENTION_SECONDS: Final[float] = 24 * 3600.0
PNL_WINDOW_SECONDS: Final[float] = 3600.0
TRADE_HISTORY_SIZE: Final[int] = 50

DEFAULT_MOVEMENT_THRESHOLD: Final[float] = 0.05  # percent
DEFAULT_THRESHOLD_MIN: Final[float] = 0.03
DEFAULT_THRESHOLD_MAX: Final[float] = 0.5

# Rolling-hour profit marks in base units
DEFAULT_LOW_WATER_MARK: Final[float] = 0.01
DEFAULT_HIGH_WATER_MARK: Final[float] = 0.1
THRESHOLD_RAISE_FACTOR: Final[float] = 1.1
THRESHOLD_LOWER_FACTOR: Final[float] = 0.9


# =============================================================================
# Engine Timers
# =============================================================================

DEFAULT_PRICE_INTERVAL: Final[float] = 3.0  # seconds
DEFAULT_TRADE_INTERVAL: Final[float] = 5.0  # seconds
STATUS_REPORT_INTERVAL: Final[float] = 60.0  # seconds


# =============================================================================
# Logging
# =============================================================================

LOG_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"
MAX_LOG_QUEUE_SIZE: Final[int] = 10000
