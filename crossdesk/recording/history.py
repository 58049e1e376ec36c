"""Bounded history of reported crossover alerts."""

import json
import logging
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from crossdesk.events import PatternDetectedEvent
from crossdesk.patterns import PatternEvent

log = logging.getLogger(__name__)


def format_alert_title(symbol: str, pattern: PatternEvent) -> str:
    """Notification title, e.g. ``"AAPL Alert: simultaneous"``."""
    return f"{symbol} Alert: {pattern.pattern_type.value}"


@dataclass(frozen=True)
class AlertRecord:
    """One reported pattern, in the shape a notification/history UI renders."""

    id: str
    symbol: str
    recorded_at: str  # ISO timestamp when the alert was recorded
    candle_timestamp: str | int
    title: str
    pattern: dict[str, Any]


class AlertHistory:
    """
    Newest-first list of alerts, capped at ``max_entries``.

    When ``history_dir`` is given the list is persisted to a JSON file after
    every change (write to ``.tmp``, then rename) and reloaded on construction.
    """

    FILENAME = "alert_history.json"
    MAX_ENTRIES = 100

    def __init__(self, history_dir: Path | None = None, max_entries: int = MAX_ENTRIES):
        self.max_entries = max_entries
        self._entries: list[AlertRecord] = []
        self._dir = Path(history_dir) if history_dir is not None else None
        if self._dir is not None:
            self._path = self._dir / self.FILENAME
            self._tmp_path = self._dir / f".{self.FILENAME}.tmp"
            self._entries = self._load()

    def record(
        self, symbol: str, pattern: PatternEvent, candle_timestamp: str | int
    ) -> AlertRecord:
        entry = AlertRecord(
            id=uuid.uuid4().hex,
            symbol=symbol,
            recorded_at=datetime.now(timezone.utc).isoformat(),
            candle_timestamp=candle_timestamp,
            title=format_alert_title(symbol, pattern),
            pattern=pattern.to_dict(),
        )
        self._entries.insert(0, entry)
        del self._entries[self.max_entries:]
        self._save()
        return entry

    def on_pattern_detected(self, event: PatternDetectedEvent) -> None:
        """EventDispatcher handler for :class:`PatternDetectedEvent`."""
        self.record(event.symbol, event.pattern, event.candle_timestamp)

    def recent(self, limit: int = 50) -> list[AlertRecord]:
        return self._entries[:limit]

    def clear(self) -> None:
        self._entries = []
        if self._dir is not None and self._path.exists():
            self._path.unlink()
            log.info("Alert history cleared")

    def __len__(self) -> int:
        return len(self._entries)

    def _save(self) -> None:
        if self._dir is None:
            return
        self._dir.mkdir(parents=True, exist_ok=True)
        data: dict[str, Any] = {
            "version": 1,
            "alerts": [asdict(e) for e in self._entries],
        }
        self._tmp_path.write_text(json.dumps(data, indent=2))
        self._tmp_path.replace(self._path)
        log.debug("Alert history saved: %d alerts", len(self._entries))

    def _load(self) -> list[AlertRecord]:
        if not self._path.exists():
            return []

        try:
            data = json.loads(self._path.read_text())
            entries = [AlertRecord(**e) for e in data.get("alerts", [])]
        except Exception:
            log.exception("Failed to load alert history from %s", self._path)
            return []
        return entries[: self.max_entries]
