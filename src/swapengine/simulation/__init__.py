"""Simulation module for dry-run mode without credentials or funds."""

from swapengine.simulation.venue import SimulatedAsset, SimulatedVenue


__all__ = [
    "SimulatedAsset",
    "SimulatedVenue",
]
