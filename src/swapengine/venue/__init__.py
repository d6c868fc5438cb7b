"""Swap venue connectivity: REST client, response models and rate limiting."""

from swapengine.venue.client import (
    SwapVenueClient,
    VenueAPIError,
    VenueError,
    VenueUnavailableError,
    is_transient,
)
from swapengine.venue.rate_limiter import RateLimiter


__all__ = [
    "RateLimiter",
    "SwapVenueClient",
    "VenueAPIError",
    "VenueError",
    "VenueUnavailableError",
    "is_transient",
]
