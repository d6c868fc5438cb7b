"""Mock implementations for testing."""

from tests.mocks.venue import MockVenue


__all__ = [
    "MockVenue",
]
