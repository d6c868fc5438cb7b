"""
Application settings with environment variable support.

Uses Pydantic Settings for type-safe configuration with automatic
environment variable loading and validation.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from swapengine.config.constants import (
    CONFIRMATION_TIMEOUT,
    DEFAULT_BASE_ASSET,
    DEFAULT_BASE_SLIPPAGE_BPS,
    DEFAULT_HIGH_VALUE_PAIRS,
    DEFAULT_HIGH_WATER_MARK,
    DEFAULT_LOW_WATER_MARK,
    DEFAULT_MAJOR_ASSETS,
    DEFAULT_MAX_CONCURRENT_TRADES,
    DEFAULT_MAX_PRICE_DEVIATION_PCT,
    DEFAULT_MAX_SLIPPAGE_BPS,
    DEFAULT_MIN_TRADE_INTERVAL,
    DEFAULT_MIN_TRADE_SIZE,
    DEFAULT_MOVEMENT_THRESHOLD,
    DEFAULT_NETWORK_FEE,
    DEFAULT_PRICE_INTERVAL,
    DEFAULT_REFERENCE_PAIRS,
    DEFAULT_STABLE_ASSETS,
    DEFAULT_THRESHOLD_MAX,
    DEFAULT_THRESHOLD_MIN,
    DEFAULT_TRADE_INTERVAL,
    DEFAULT_TRADING_PAIRS,
    DEFAULT_VENUE_URL,
    DEFAULT_VOLATILE_ASSETS,
    MAX_CONNECTION_FAILURES,
    QUOTE_ATTEMPTS,
    RETRY_BASE_DELAY,
    STATUS_POLL_ATTEMPTS,
    STATUS_POLL_INTERVAL,
    STATUS_REPORT_INTERVAL,
    SUBMIT_ATTEMPTS,
)
from swapengine.core.types import TradingPair


class ConfigurationError(Exception):
    """Fatal configuration problem detected at startup."""


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables. List and
    dict settings are read as JSON (e.g. TRADING_PAIRS='["SOL/USDC"]').
    Sensitive values use SecretStr for safe handling.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Wallet Credentials
    # =========================================================================

    wallet_address: str = Field(
        ...,
        description="Public address of the trading account",
    )
    wallet_secret: SecretStr = Field(
        ...,
        description="Secret used to sign swap intents",
    )
    venue_api_key: SecretStr | None = Field(
        default=None,
        description="Optional API key sent to the swap venue",
    )

    # =========================================================================
    # Network Configuration
    # =========================================================================

    venue_url: str = Field(
        default=DEFAULT_VENUE_URL,
        description="Base URL of the quoting/execution venue",
    )

    request_timeout: float = Field(
        default=10.0,
        ge=1.0,
        le=120.0,
        description="HTTP request timeout in seconds",
    )

    max_connection_failures: int = Field(
        default=MAX_CONNECTION_FAILURES,
        ge=1,
        le=50,
        description="Consecutive connection failures before the venue is unavailable",
    )

    # =========================================================================
    # Trading Configuration
    # =========================================================================

    base_asset: str = Field(
        default=DEFAULT_BASE_ASSET,
        description="Asset all profits are consolidated into",
    )

    trading_pairs: list[str] = Field(
        default_factory=lambda: list(DEFAULT_TRADING_PAIRS),
        description="Pairs to watch, as BASE/QUOTE names",
    )

    high_value_pairs: list[str] = Field(
        default_factory=lambda: list(DEFAULT_HIGH_VALUE_PAIRS),
        description="Pairs allowed to signal on acceleration alone",
    )

    reference_pairs: list[str] = Field(
        default_factory=lambda: list(DEFAULT_REFERENCE_PAIRS),
        description="Pairs whose direction reveals a base-asset downtrend",
    )

    stable_assets: list[str] = Field(default_factory=lambda: list(DEFAULT_STABLE_ASSETS))
    major_assets: list[str] = Field(default_factory=lambda: list(DEFAULT_MAJOR_ASSETS))
    volatile_assets: list[str] = Field(default_factory=lambda: list(DEFAULT_VOLATILE_ASSETS))

    min_trade_size: float = Field(
        default=DEFAULT_MIN_TRADE_SIZE,
        gt=0.0,
        description="Minimum trade size in input-asset units",
    )

    network_fee: float = Field(
        default=DEFAULT_NETWORK_FEE,
        ge=0.0,
        description="Fixed network fee per transaction in base-asset units",
    )

    base_slippage_bps: int = Field(
        default=DEFAULT_BASE_SLIPPAGE_BPS,
        ge=1,
        le=5000,
        description="Base slippage tolerance before class and confidence scaling",
    )

    max_slippage_bps: int = Field(
        default=DEFAULT_MAX_SLIPPAGE_BPS,
        ge=1,
        le=5000,
        description="Hard cap on any requested slippage tolerance",
    )

    # =========================================================================
    # Adaptive Threshold
    # =========================================================================

    min_movement_threshold: float = Field(
        default=DEFAULT_MOVEMENT_THRESHOLD,
        gt=0.0,
        description="Initial movement threshold in percent",
    )
    threshold_min: float = Field(default=DEFAULT_THRESHOLD_MIN, gt=0.0)
    threshold_max: float = Field(default=DEFAULT_THRESHOLD_MAX, gt=0.0)

    low_water_mark: float = Field(
        default=DEFAULT_LOW_WATER_MARK,
        description="Rolling-hour profit below which the threshold is raised",
    )
    high_water_mark: float = Field(
        default=DEFAULT_HIGH_WATER_MARK,
        description="Rolling-hour profit above which the threshold is lowered",
    )

    threshold_reset_interval: float = Field(
        default=0.0,
        ge=0.0,
        description="Seconds between resets to the initial threshold (0 disables)",
    )

    # =========================================================================
    # Risk Management
    # =========================================================================

    max_concurrent_trades: int = Field(
        default=DEFAULT_MAX_CONCURRENT_TRADES,
        ge=1,
        le=10,
        description="Maximum number of trades in flight",
    )

    min_trade_interval: float = Field(
        default=DEFAULT_MIN_TRADE_INTERVAL,
        ge=0.0,
        description="Minimum seconds between trade starts",
    )

    max_price_deviation_pct: float = Field(
        default=DEFAULT_MAX_PRICE_DEVIATION_PCT,
        gt=0.0,
        le=100.0,
        description="Allowed deviation of the quoted price from the observed price",
    )

    ignore_price_deviation: bool = Field(
        default=False,
        description="Skip the quote price deviation check",
    )

    daily_profit_target: float = Field(
        default=0.0,
        ge=0.0,
        description="Halt for the day once realized profit reaches this (0 disables)",
    )

    aggressive_mode: bool = Field(
        default=False,
        description="Keep trading after the daily profit target is reached",
    )

    # =========================================================================
    # Execution
    # =========================================================================

    quote_attempts: int = Field(default=QUOTE_ATTEMPTS, ge=1, le=10)
    submit_attempts: int = Field(default=SUBMIT_ATTEMPTS, ge=1, le=10)
    retry_base_delay: float = Field(default=RETRY_BASE_DELAY, ge=0.0, le=30.0)
    confirmation_timeout: float = Field(default=CONFIRMATION_TIMEOUT, gt=0.0)
    status_poll_attempts: int = Field(default=STATUS_POLL_ATTEMPTS, ge=1, le=60)
    status_poll_interval: float = Field(default=STATUS_POLL_INTERVAL, ge=0.0)

    # =========================================================================
    # Timers
    # =========================================================================

    price_interval: float = Field(
        default=DEFAULT_PRICE_INTERVAL,
        gt=0.0,
        description="Seconds between price-tracking ticks",
    )

    trade_interval: float = Field(
        default=DEFAULT_TRADE_INTERVAL,
        gt=0.0,
        description="Seconds between detection/execution ticks",
    )

    status_interval: float = Field(
        default=STATUS_REPORT_INTERVAL,
        gt=0.0,
        description="Seconds between status log lines",
    )

    # =========================================================================
    # Operation Mode
    # =========================================================================

    dry_run: bool = Field(
        default=True,
        description="Trade against the simulated venue instead of the real one",
    )

    dry_run_balances: dict[str, float] = Field(
        default_factory=lambda: {"SOL": 1.0, "USDC": 50.0, "USDT": 50.0},
        description="Starting balances of the simulated venue",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )

    log_file: Path | None = Field(
        default=None,
        description="Optional log file path",
    )

    pnl_store_path: Path | None = Field(
        default=Path("data/pnl.jsonl"),
        description="Append-only profit history (None disables persistence)",
    )

    use_uvloop: bool = Field(
        default=True,
        description="Use uvloop for improved async performance",
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("wallet_address", mode="after")
    @classmethod
    def validate_address(cls, v: str) -> str:
        """Ensure the account address is not empty."""
        if not v.strip():
            raise ValueError("Wallet address cannot be empty")
        return v.strip()

    @field_validator("wallet_secret", mode="after")
    @classmethod
    def validate_secret(cls, v: SecretStr) -> SecretStr:
        """Ensure credentials are not empty."""
        if not v.get_secret_value():
            raise ValueError("Credential cannot be empty")
        return v

    @field_validator("trading_pairs", "high_value_pairs", "reference_pairs", mode="after")
    @classmethod
    def validate_pairs(cls, v: list[str]) -> list[str]:
        """Ensure every pair name parses as BASE/QUOTE."""
        for name in v:
            TradingPair.parse(name)
        return v

    @model_validator(mode="after")
    def validate_threshold_band(self) -> "Settings":
        """Ensure threshold_min <= min_movement_threshold <= threshold_max."""
        if self.threshold_min > self.threshold_max:
            raise ValueError(
                f"threshold_min {self.threshold_min} exceeds threshold_max {self.threshold_max}"
            )
        if not self.threshold_min <= self.min_movement_threshold <= self.threshold_max:
            raise ValueError(
                f"min_movement_threshold {self.min_movement_threshold} outside "
                f"[{self.threshold_min}, {self.threshold_max}]"
            )
        if self.low_water_mark > self.high_water_mark:
            raise ValueError("low_water_mark cannot exceed high_water_mark")
        return self

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def pairs(self) -> list[TradingPair]:
        """Configured trading pairs."""
        return [TradingPair.parse(name) for name in self.trading_pairs]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are loaded only once.
    Clear cache with `get_settings.cache_clear()` if needed.
    """
    return Settings()  # type: ignore[call-arg, unused-ignore]
