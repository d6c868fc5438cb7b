"""
Internal event bus for decoupled communication.

The engine emits structured events for logging and reporting
collaborators. Delivery is best-effort: handler errors are isolated and
emitting never blocks the trading loops.
"""

import asyncio
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from swapengine.utils.time import get_timestamp


logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """System event types."""

    # Strategy events
    OPPORTUNITY_DETECTED = "opportunity_detected"
    THRESHOLD_ADJUSTED = "threshold_adjusted"

    # Execution events
    TRADE_SETTLED = "trade_settled"
    TRADE_FAILED = "trade_failed"
    CONSOLIDATION_COMPLETED = "consolidation_completed"

    # System events
    TRADING_HALTED = "trading_halted"
    TRADING_RESUMED = "trading_resumed"
    SHUTDOWN = "shutdown"


T = TypeVar("T")


@dataclass
class Event(Generic[T]):
    """Generic event with typed payload."""

    type: EventType
    payload: T
    timestamp: float = 0.0
    source: str = ""


# Type alias for event handlers
EventHandler = Callable[[Event[Any]], Awaitable[None]]
SyncEventHandler = Callable[[Event[Any]], None]


class EventBus:
    """
    Best-effort publish/subscribe bus.

    Features:
    - Async and sync handler support
    - Priority-based handler ordering
    - Error isolation per handler
    - Fire-and-forget emission from synchronous code
    """

    def __init__(self) -> None:
        """Initialize event bus."""
        self._handlers: dict[EventType, list[tuple[int, EventHandler]]] = defaultdict(list)
        self._sync_handlers: dict[EventType, list[tuple[int, SyncEventHandler]]] = defaultdict(list)
        self._pending: set[asyncio.Task[None]] = set()

    def subscribe(
        self,
        event_type: EventType,
        handler: EventHandler,
        priority: int = 0,
    ) -> None:
        """
        Subscribe an async handler to an event type.

        Args:
            event_type: Event type to handle.
            handler: Async handler function.
            priority: Handler priority (higher = earlier execution).
        """
        self._handlers[event_type].append((priority, handler))
        self._handlers[event_type].sort(key=lambda x: x[0], reverse=True)

    def subscribe_sync(
        self,
        event_type: EventType,
        handler: SyncEventHandler,
        priority: int = 0,
    ) -> None:
        """Subscribe a sync handler to an event type."""
        self._sync_handlers[event_type].append((priority, handler))
        self._sync_handlers[event_type].sort(key=lambda x: x[0], reverse=True)

    def unsubscribe(
        self,
        event_type: EventType,
        handler: EventHandler | SyncEventHandler,
    ) -> bool:
        """
        Unsubscribe a handler.

        Returns:
            True if handler was found and removed.
        """
        for i, (_, ah) in enumerate(self._handlers[event_type]):
            if ah == handler:
                self._handlers[event_type].pop(i)
                return True

        for i, (_, sh) in enumerate(self._sync_handlers[event_type]):
            if sh == handler:
                self._sync_handlers[event_type].pop(i)
                return True

        return False

    def emit(self, event_type: EventType, payload: Any, source: str = "") -> None:
        """
        Emit an event without waiting for handlers.

        Sync handlers run inline; async handlers are scheduled as tasks
        on the running loop. Without a running loop only sync handlers
        receive the event.

        Args:
            event_type: Event type.
            payload: Entity carried by the event.
            source: Emitting component name.
        """
        event: Event[Any] = Event(event_type, payload, get_timestamp(), source)
        self._run_sync_handlers(event)

        if not self._handlers[event_type]:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"No running loop, async handlers skipped for {event_type.value}")
            return

        for _, async_handler in self._handlers[event_type]:
            task = loop.create_task(self._safe_call(async_handler, event))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for async handlers scheduled by emit() to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending))

    def _run_sync_handlers(self, event: Event[Any]) -> None:
        for _, sync_handler in self._sync_handlers[event.type]:
            try:
                sync_handler(event)
            except Exception as e:
                logger.error(f"Sync handler error for {event.type.value}: {e}")

    async def _safe_call(self, handler: EventHandler, event: Event[Any]) -> None:
        """Safely call a handler with error isolation."""
        try:
            await handler(event)
        except Exception as e:
            logger.error(f"Handler error for {event.type.value}: {e}")

    def handler_count(self, event_type: EventType) -> int:
        """Get number of handlers for an event type."""
        return len(self._handlers[event_type]) + len(self._sync_handlers[event_type])
