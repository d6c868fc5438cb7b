"""
Queue-based logging.

Log records are handed to a background thread so that file and console
I/O never block the event loop between trading steps.
"""

import logging
import sys
from datetime import datetime
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path
from queue import Queue
from typing import Any

from swapengine.config.constants import LOG_DATE_FORMAT, LOG_FORMAT, MAX_LOG_QUEUE_SIZE
from swapengine.core.event_bus import Event, EventBus, EventType


class MicrosecondFormatter(logging.Formatter):
    """Formatter with microsecond precision timestamps."""

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        ct = datetime.fromtimestamp(record.created)
        return f"{ct.strftime(datefmt or LOG_DATE_FORMAT)}.{ct.microsecond:06d}"


class LogPipeline:
    """
    Non-blocking log output for one logger tree.

    The logger only enqueues records; a QueueListener thread formats and
    writes them to the console and, optionally, a file.
    """

    def __init__(
        self,
        name: str,
        level: int = logging.INFO,
        log_file: Path | None = None,
    ) -> None:
        """
        Initialize pipeline.

        Args:
            name: Root logger name of the tree to capture.
            level: Console level.
            log_file: Optional file receiving every record down to DEBUG.
        """
        self._level = level
        self._log_file = log_file
        self._queue: Queue[logging.LogRecord] = Queue(maxsize=MAX_LOG_QUEUE_SIZE)
        self._queue_handler = QueueHandler(self._queue)
        self._listener: QueueListener | None = None
        self._logger = logging.getLogger(name)

    def _build_handlers(self) -> list[logging.Handler]:
        formatter = MicrosecondFormatter(LOG_FORMAT, LOG_DATE_FORMAT)

        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(formatter)
        console.setLevel(self._level)
        handlers: list[logging.Handler] = [console]

        if self._log_file:
            self._log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(self._log_file)
            file_handler.setFormatter(formatter)
            file_handler.setLevel(logging.DEBUG)
            handlers.append(file_handler)

        return handlers

    def start(self) -> None:
        if self._listener:
            return

        self._logger.addHandler(self._queue_handler)
        self._logger.setLevel(logging.DEBUG if self._log_file else self._level)

        self._listener = QueueListener(
            self._queue,
            *self._build_handlers(),
            respect_handler_level=True,
        )
        self._listener.start()

    def stop(self) -> None:
        """Flush queued records and detach."""
        if self._listener:
            self._listener.stop()
            self._listener = None
        self._logger.removeHandler(self._queue_handler)

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def __enter__(self) -> "LogPipeline":
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        self.stop()


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
) -> LogPipeline:
    """
    Set up application-wide logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional log file path.

    Returns:
        Started LogPipeline; call stop() on shutdown to flush.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    pipeline = LogPipeline("swapengine", level=numeric_level, log_file=log_file)
    pipeline.start()

    # Suppress noisy third-party loggers
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    return pipeline


class EventLogger:
    """Writes engine events to the log."""

    LEVELS: dict[EventType, int] = {
        EventType.OPPORTUNITY_DETECTED: logging.DEBUG,
        EventType.THRESHOLD_ADJUSTED: logging.DEBUG,
        EventType.TRADE_SETTLED: logging.INFO,
        EventType.TRADE_FAILED: logging.WARNING,
        EventType.CONSOLIDATION_COMPLETED: logging.INFO,
        EventType.TRADING_HALTED: logging.WARNING,
        EventType.TRADING_RESUMED: logging.INFO,
        EventType.SHUTDOWN: logging.INFO,
    }

    def __init__(self, event_bus: EventBus, name: str = "swapengine.events") -> None:
        self._event_bus = event_bus
        self._logger = logging.getLogger(name)

    def attach(self) -> None:
        for event_type in self.LEVELS:
            self._event_bus.subscribe_sync(event_type, self.handle)

    def detach(self) -> None:
        for event_type in self.LEVELS:
            self._event_bus.unsubscribe(event_type, self.handle)

    def handle(self, event: Event[Any]) -> None:
        level = self.LEVELS.get(event.type, logging.INFO)
        self._logger.log(level, f"[{event.type.value}] {event.source}: {event.payload}")
