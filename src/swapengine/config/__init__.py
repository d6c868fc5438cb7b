"""Configuration module for the swap engine."""

from swapengine.config.constants import (
    DEFAULT_BASE_ASSET,
    DEFAULT_TRADING_PAIRS,
    DEFAULT_VENUE_URL,
)
from swapengine.config.settings import ConfigurationError, Settings, get_settings


__all__ = [
    "ConfigurationError",
    "DEFAULT_BASE_ASSET",
    "DEFAULT_TRADING_PAIRS",
    "DEFAULT_VENUE_URL",
    "Settings",
    "get_settings",
]
