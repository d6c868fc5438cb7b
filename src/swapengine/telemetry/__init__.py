"""Telemetry module for logging, metrics, and reporting."""

from swapengine.telemetry.logger import EventLogger, LogPipeline, setup_logging
from swapengine.telemetry.metrics import MetricsCollector
from swapengine.telemetry.reporter import StatusReporter


__all__ = [
    "EventLogger",
    "LogPipeline",
    "MetricsCollector",
    "StatusReporter",
    "setup_logging",
]
