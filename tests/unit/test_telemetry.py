"""
Unit tests for metrics, status reporting and event logging.
"""

import io
import logging
from pathlib import Path

import pytest

from swapengine.core.event_bus import EventBus, EventType
from swapengine.core.session import Session
from swapengine.core.types import ConsolidationResult, Opportunity, TradeRecord, TradeResult
from swapengine.ledger.pnl import PnLLedger
from swapengine.telemetry.logger import EventLogger, LogPipeline
from swapengine.telemetry.metrics import MetricsCollector
from swapengine.telemetry.reporter import StatusReporter


def trade(success: bool, confirmed: bool = True) -> TradeResult:
    return TradeResult(
        success=success,
        input_asset="SOL",
        output_asset="USDC",
        input_amount=0.14,
        output_amount=14.42 if success else 0.0,
        confirmed=confirmed,
        start_timestamp_us=1_000,
        end_timestamp_us=3_000,
    )


class TestMetricsCollector:
    """Tests for MetricsCollector."""

    def test_latency_stats(self) -> None:
        metrics = MetricsCollector()
        for value in (100, 200, 300):
            metrics.record_latency("price_fetch", value)

        stats = metrics.get_latency_stats("price_fetch")

        assert stats.count == 3
        assert stats.min_us == 100
        assert stats.max_us == 300
        assert stats.avg_us == pytest.approx(200.0)

    def test_unknown_latency(self) -> None:
        assert MetricsCollector().get_latency_stats("none").count == 0

    def test_counts_events(self, event_bus: EventBus, opportunity: Opportunity) -> None:
        """Test counting through the event bus."""
        metrics = MetricsCollector()
        metrics.attach(event_bus)

        event_bus.emit(EventType.OPPORTUNITY_DETECTED, opportunity)
        event_bus.emit(EventType.TRADE_SETTLED, trade(True))
        event_bus.emit(EventType.TRADE_SETTLED, trade(True, confirmed=False))
        event_bus.emit(EventType.TRADE_FAILED, trade(False))
        event_bus.emit(
            EventType.CONSOLIDATION_COMPLETED, ConsolidationResult("USDC", True, 14.0)
        )

        stats = metrics.trading_stats
        assert stats.opportunities_detected == 1
        assert stats.best_move_pct == pytest.approx(3.0)
        assert stats.trades_settled == 2
        assert stats.trades_indeterminate == 1
        assert stats.trades_failed == 1
        assert stats.success_rate == pytest.approx(2 / 3)
        assert stats.consolidations_completed == 1
        assert metrics.get_latency_stats("trade").count == 3

    def test_rejections_and_profit(self) -> None:
        metrics = MetricsCollector()
        metrics.record_rejection("risk")
        metrics.record_rejection("risk")
        metrics.record_profit(0.002)

        assert metrics.trading_stats.opportunities_rejected == 2
        assert metrics.get_counter("rejected_risk") == 2
        assert metrics.trading_stats.realized_profit == pytest.approx(0.002)


class TestStatusReporter:
    """Tests for StatusReporter."""

    def test_status_line(self, session: Session, ledger: PnLLedger) -> None:
        reporter = StatusReporter(MetricsCollector(), ledger, session)

        line = reporter.status_line()

        assert "Threshold: 0.0500%" in line
        assert "Balance: 10.000000 SOL" in line
        assert "Trading: ON" in line

    def test_halted_status(self, session: Session, ledger: PnLLedger) -> None:
        session.halt("daily profit target reached")
        reporter = StatusReporter(MetricsCollector(), ledger, session)

        assert "HALTED (daily profit target reached)" in reporter.status_line()

    def test_summary_lists_trades(self, session: Session, ledger: PnLLedger) -> None:
        ledger.add_trade(TradeRecord("SOL/USDC", 0.14, 14.42, -0.000005, False, "tx1"))
        output = io.StringIO()
        reporter = StatusReporter(MetricsCollector(), ledger, session, output=output)

        reporter.print_summary()

        text = output.getvalue()
        assert "SESSION SUMMARY (DRY RUN)" in text
        assert "RECENT TRADES" in text
        assert "(unconfirmed)" in text


class TestEventLogger:
    """Tests for EventLogger."""

    def test_logs_at_event_level(
        self, event_bus: EventBus, caplog: pytest.LogCaptureFixture
    ) -> None:
        event_logger = EventLogger(event_bus)
        event_logger.attach()

        with caplog.at_level(logging.DEBUG, logger="swapengine.events"):
            event_bus.emit(EventType.TRADING_HALTED, {"reason": "target"}, source="engine")

        assert caplog.records[-1].levelno == logging.WARNING
        assert "[trading_halted] engine" in caplog.records[-1].getMessage()

    def test_detach(self, event_bus: EventBus) -> None:
        event_logger = EventLogger(event_bus)
        event_logger.attach()
        event_logger.detach()

        assert event_bus.handler_count(EventType.TRADE_SETTLED) == 0


class TestLogPipeline:
    """Tests for LogPipeline."""

    def test_writes_log_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "engine.log"

        with LogPipeline("swapengine.test_pipeline", log_file=log_file) as pipeline:
            pipeline.logger.debug("debug line")
            pipeline.logger.info("info line")

        text = log_file.read_text()
        assert "debug line" in text
        assert "info line" in text
