"""
Unit tests for EventBus.
"""

from typing import Any

import pytest

from swapengine.core.event_bus import Event, EventBus, EventType


class TestEventBus:
    """Tests for EventBus."""

    def test_sync_handler_runs_inline(self, event_bus: EventBus) -> None:
        received: list[Event[Any]] = []
        event_bus.subscribe_sync(EventType.TRADE_SETTLED, received.append)

        event_bus.emit(EventType.TRADE_SETTLED, "payload", source="test")

        assert len(received) == 1
        assert received[0].payload == "payload"
        assert received[0].source == "test"

    def test_priority_order(self, event_bus: EventBus) -> None:
        order: list[str] = []
        event_bus.subscribe_sync(EventType.TRADE_FAILED, lambda e: order.append("low"), priority=0)
        event_bus.subscribe_sync(EventType.TRADE_FAILED, lambda e: order.append("high"), priority=10)

        event_bus.emit(EventType.TRADE_FAILED, None)

        assert order == ["high", "low"]

    def test_handler_error_isolated(self, event_bus: EventBus) -> None:
        received: list[Event[Any]] = []

        def broken(event: Event[Any]) -> None:
            raise RuntimeError("boom")

        event_bus.subscribe_sync(EventType.TRADE_FAILED, broken, priority=1)
        event_bus.subscribe_sync(EventType.TRADE_FAILED, received.append)

        event_bus.emit(EventType.TRADE_FAILED, None)

        assert len(received) == 1

    def test_unsubscribe_bound_method(self, event_bus: EventBus) -> None:
        """Test that a bound method can be unsubscribed."""

        class Sink:
            def __init__(self) -> None:
                self.events: list[Event[Any]] = []

            def handle(self, event: Event[Any]) -> None:
                self.events.append(event)

        sink = Sink()
        event_bus.subscribe_sync(EventType.SHUTDOWN, sink.handle)

        assert event_bus.unsubscribe(EventType.SHUTDOWN, sink.handle)
        event_bus.emit(EventType.SHUTDOWN, None)
        assert sink.events == []

    @pytest.mark.asyncio
    async def test_async_handler_drained(self, event_bus: EventBus) -> None:
        received: list[Event[Any]] = []

        async def handler(event: Event[Any]) -> None:
            received.append(event)

        event_bus.subscribe(EventType.TRADE_SETTLED, handler)
        event_bus.emit(EventType.TRADE_SETTLED, 1)
        await event_bus.drain()

        assert len(received) == 1
        assert event_bus.handler_count(EventType.TRADE_SETTLED) == 1

    def test_emit_without_loop_skips_async(self, event_bus: EventBus) -> None:
        async def handler(event: Event[Any]) -> None:
            raise AssertionError("should not run")

        event_bus.subscribe(EventType.TRADE_SETTLED, handler)
        event_bus.emit(EventType.TRADE_SETTLED, 1)
