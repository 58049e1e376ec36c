# examples/csv_scan.py
"""Scan CSV candle files for EMA/MACD crossover patterns."""
import csv
import logging
from pathlib import Path

from crossdesk import Candle, JsonFileWatermarkStore, ScanConfig, run_scans
from crossdesk.events import EventDispatcher, PatternDetectedEvent
from crossdesk.providers import CandleSource
from crossdesk.recording import AlertHistory

log = logging.getLogger(__name__)


class CsvCandleSource(CandleSource):
    """
    Reads ``<data_dir>/<SYMBOL>.csv`` with a header of
    timestamp,open,high,low,close,volume (oldest row first).

    This is a stand-in for a market-data API client.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = data_dir

    async def get_candles(self, symbol: str, timeframe: str) -> list[Candle]:
        path = self.data_dir / f"{symbol}.csv"
        if not path.exists():
            log.warning("No CSV for %s at %s", symbol, path)
            return []

        with path.open(newline="") as f:
            return [
                Candle(
                    timestamp=row["timestamp"],
                    open=float(row["open"]),
                    high=float(row["high"]),
                    low=float(row["low"]),
                    close=float(row["close"]),
                    volume=float(row.get("volume") or 0.0),
                )
                for row in csv.DictReader(f)
            ]


def print_alert(event: PatternDetectedEvent) -> None:
    log.info("🔔 %s @ %s: %s", event.symbol, event.candle_timestamp, event.pattern.description)


if __name__ == "__main__":
    state_dir = Path("state")
    config = ScanConfig.from_raw(
        {
            "symbols": ["AAPL", "MSFT"],
            "timeframe": "15m",
            "notificationSettings": {"maxCandleWindow": 6},
        }
    )

    dispatcher = EventDispatcher()
    history = AlertHistory(state_dir)
    dispatcher.subscribe(PatternDetectedEvent, print_alert)
    dispatcher.subscribe(PatternDetectedEvent, history.on_pattern_detected)

    run_scans(
        config,
        source_factory=lambda: CsvCandleSource(Path("data")),
        watermarks=JsonFileWatermarkStore(state_dir),
        dispatcher=dispatcher,
        log_level="DEBUG",
    )
