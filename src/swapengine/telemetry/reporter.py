"""
Status reporting.

A one-line status is logged periodically while the engine runs; a
session summary is printed at shutdown.
"""

import logging
import sys
from typing import TextIO

from swapengine.core.session import Session
from swapengine.ledger.pnl import PnLLedger
from swapengine.telemetry.metrics import MetricsCollector
from swapengine.utils.time import format_duration_us


logger = logging.getLogger(__name__)


class StatusReporter:
    """Renders engine state from metrics, the ledger and the session."""

    def __init__(
        self,
        metrics: MetricsCollector,
        ledger: PnLLedger,
        session: Session,
        output: TextIO | None = None,
        dry_run: bool = True,
    ) -> None:
        self._metrics = metrics
        self._ledger = ledger
        self._session = session
        self._output = output or sys.stdout
        self._dry_run = dry_run

    @staticmethod
    def _format_uptime(seconds: float) -> str:
        hours, remainder = divmod(int(seconds), 3600)
        minutes, secs = divmod(remainder, 60)
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"

    def status_line(self) -> str:
        """Get a single-line status update."""
        stats = self._metrics.trading_stats
        base = self._session.base_asset
        state = "ON" if self._session.trading_enabled else f"HALTED ({self._session.halt_reason})"

        return (
            f"Opp: {stats.opportunities_detected}/{stats.opportunities_rejected} rej | "
            f"Trades: {stats.trades_settled}/{stats.trades_failed} fail | "
            f"Threshold: {self._ledger.threshold.value:.4f}% | "
            f"Hourly: {self._ledger.last_hourly_profit:+.6f} {base} | "
            f"Balance: {self._session.balance(base):.6f} {base} | "
            f"Trading: {state}"
        )

    def log_status(self) -> None:
        logger.info(self.status_line())

    def summary(self) -> str:
        """Render the end-of-session summary."""
        stats = self._metrics.trading_stats
        trade_latency = self._metrics.get_latency_stats("trade")
        base = self._session.base_asset
        mode = "DRY RUN" if self._dry_run else "LIVE"

        lines = [
            "=" * 56,
            f"  SESSION SUMMARY ({mode})",
            "=" * 56,
            f"  Uptime: {self._format_uptime(self._metrics.uptime_seconds)}",
            "",
            "  OPPORTUNITIES:",
            f"    Detected:   {stats.opportunities_detected:,}",
            f"    Rejected:   {stats.opportunities_rejected:,}",
            "",
            "  TRADES:",
            f"    Settled:        {stats.trades_settled:,}",
            f"    Unconfirmed:    {stats.trades_indeterminate:,}",
            f"    Failed:         {stats.trades_failed:,}",
            f"    Success rate:   {stats.success_rate:.1%}",
        ]
        if trade_latency.count:
            lines.append(f"    Avg latency:    {format_duration_us(trade_latency.avg_us)}")

        lines += [
            "",
            "  CONSOLIDATION:",
            f"    Completed:  {stats.consolidations_completed:,}",
            f"    Failed:     {stats.consolidations_failed:,}",
            "",
            "  P&L:",
            f"    Realized:   {stats.realized_profit:+.6f} {base}",
            f"    Today:      {self._ledger.today_profit:+.6f} {base}",
            f"    Threshold:  {self._ledger.threshold.value:.4f}%",
        ]

        trades = self._ledger.trades
        if trades:
            lines += ["", "  RECENT TRADES:"]
            for trade in trades[-5:]:
                flag = "" if trade.confirmed else " (unconfirmed)"
                lines.append(
                    f"    {trade.pair:<12} {trade.input_amount:>12.6f} -> "
                    f"{trade.output_amount:>14.6f}  {trade.profit_base:+.6f} {base}{flag}"
                )

        lines.append("=" * 56)
        return "\n".join(lines)

    def print_summary(self) -> None:
        self._output.write(self.summary())
        self._output.write("\n")
        self._output.flush()
