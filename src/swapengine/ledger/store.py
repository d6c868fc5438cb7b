"""
Append-only persistence for the profit ledger.

Each update is written as one JSON line keyed by timestamp, so the rolling
profit history and the adaptive threshold survive a restart.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

import orjson


logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class PnLEntry:
    """One persisted ledger update."""

    timestamp: float
    amount: float
    threshold: float

    def to_dict(self) -> dict[str, float]:
        return {"timestamp": self.timestamp, "amount": self.amount, "threshold": self.threshold}


class PnLStore:
    """JSON-lines ledger file."""

    def __init__(self, path: Path) -> None:
        """
        Initialize store.

        Args:
            path: File path; parent directories are created on first write.
        """
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def append(self, entry: PnLEntry) -> None:
        """Append one entry."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("ab") as f:
            f.write(orjson.dumps(entry.to_dict()))
            f.write(b"\n")

    def load(self) -> list[PnLEntry]:
        """
        Load every entry in file order.

        A missing file yields an empty list. Malformed lines are
        logged and skipped.
        """
        if not self._path.exists():
            return []

        entries: list[PnLEntry] = []
        with self._path.open("rb") as f:
            for line_no, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    data = orjson.loads(line)
                    entries.append(
                        PnLEntry(
                            timestamp=float(data["timestamp"]),
                            amount=float(data["amount"]),
                            threshold=float(data["threshold"]),
                        )
                    )
                except (orjson.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                    logger.warning(f"Skipping malformed ledger line {line_no} in {self._path}: {e}")

        entries.sort(key=lambda e: e.timestamp)
        return entries
