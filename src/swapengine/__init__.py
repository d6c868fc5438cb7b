"""
Opportunistic Swap Engine.

An asynchronous trading bot that watches pair prices, detects short-term
dislocations, executes swaps through a quoting venue and sweeps the
proceeds back into the base asset.
"""

__version__ = "1.0.0"
