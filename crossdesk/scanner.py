"""
Crossover pattern pipeline.

    candles -> indicators -> crossovers (EMA, MACD) -> patterns -> watermark filter

:meth:`PatternScanner.detect` is pure. :meth:`PatternScanner.scan` adds the
watermark step, the only part with a side effect.
"""

import logging
from collections.abc import Mapping, Sequence

from crossdesk.config import ScanConfig
from crossdesk.crossover import detect_ema_crossovers, detect_macd_crossovers
from crossdesk.errors import CrossdeskError
from crossdesk.indicators import compute_indicators
from crossdesk.marketdata import Candle, ChartHistory
from crossdesk.patterns import PatternEvent, find_sequential, find_simultaneous
from crossdesk.watermark import WatermarkFilter, WatermarkStore


log = logging.getLogger(__name__)


__all__ = ["PatternScanner"]


class PatternScanner:
    """
    Runs the full detection pipeline for one symbol's candle batch at a time.

    Example:
        scanner = PatternScanner(ScanConfig(), InMemoryWatermarkStore())
        new_patterns = scanner.scan("AAPL", candles)
    """

    def __init__(self, config: ScanConfig, watermarks: WatermarkStore):
        self.config = config
        self.watermark_filter = WatermarkFilter(watermarks)

    def _history(self, symbol: str, candles: Sequence[Candle]) -> ChartHistory:
        return ChartHistory.from_candles(
            symbol, self.config.timeframe, candles, max_length=max(len(candles), 1)
        )

    def detect(self, candles: Sequence[Candle], symbol: str = "") -> list[PatternEvent]:
        """
        Detect every enabled pattern in the batch, without consulting watermarks.

        Simultaneous patterns come first, then sequential ones.
        """
        if not candles:
            return []

        history = self._history(symbol, candles)
        indicators = compute_indicators(history.get_closes(), self.config)

        ema_events = detect_ema_crossovers(indicators.ema_fast, indicators.ema_slow)
        macd_events = detect_macd_crossovers(
            indicators.macd.macd_line, indicators.macd.signal_line
        )

        patterns: list[PatternEvent] = []
        if self.config.simultaneous_crossovers:
            patterns.extend(find_simultaneous(ema_events, macd_events))
        if self.config.sequential_crossovers:
            patterns.extend(
                find_sequential(ema_events, macd_events, self.config.max_candle_window)
            )

        log.debug(
            "%s: %d EMA crossovers, %d MACD crossovers, %d patterns over %d candles",
            symbol or "(unnamed)",
            len(ema_events),
            len(macd_events),
            len(patterns),
            len(candles),
        )
        return patterns

    def scan(self, symbol: str, candles: Sequence[Candle]) -> list[PatternEvent]:
        """Detect patterns and drop any already reported for ``symbol``."""
        patterns = self.detect(candles, symbol=symbol)
        fresh = self.watermark_filter.filter_new(symbol, patterns, candles)
        if fresh:
            log.info("%s: %d new crossover pattern%s", symbol, len(fresh), "s" if len(fresh) != 1 else "")
        return fresh

    def scan_many(
        self, batches: Mapping[str, Sequence[Candle]]
    ) -> dict[str, list[PatternEvent]]:
        """
        Scan several symbols. A symbol that fails is logged and left out of
        the result; the others are still processed.
        """
        results: dict[str, list[PatternEvent]] = {}
        for symbol, candles in batches.items():
            try:
                results[symbol] = self.scan(symbol, candles)
            except CrossdeskError:
                log.exception("Error processing %s", symbol)
        return results
