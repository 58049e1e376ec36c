"""Tests for the scan runner."""

import logging
from unittest.mock import AsyncMock, patch

import pytest

from crossdesk.events import EventDispatcher, PatternDetectedEvent, ScanCompletedEvent
from crossdesk.providers import CandleSource
from crossdesk.recording import AlertHistory
from crossdesk.runner import configure_logging, run_scan, run_scans
from crossdesk.scanner import PatternScanner
from crossdesk.watermark import InMemoryWatermarkStore


class FakeSource(CandleSource):
    def __init__(self, batches, fail=()):
        self.batches = batches
        self.fail = set(fail)
        self.requested = []
        self.started = False
        self.closed = False

    async def start(self):
        self.started = True

    async def close(self):
        self.closed = True

    async def get_candles(self, symbol, timeframe):
        self.requested.append((symbol, timeframe))
        if symbol in self.fail:
            raise ConnectionError(f"{symbol} feed unavailable")
        return self.batches.get(symbol, [])


@pytest.fixture
def config(regression_config):
    from dataclasses import replace

    return replace(regression_config, symbols=("AAPL", "MSFT", "GOOGL", "TSLA"))


@pytest.mark.asyncio
async def test_run_scan_publishes_new_patterns(config, regression_candles, store):
    source = FakeSource({"AAPL": regression_candles, "MSFT": regression_candles})
    scanner = PatternScanner(config, store)
    dispatcher = EventDispatcher()
    detected, completed = [], []
    dispatcher.subscribe(PatternDetectedEvent, detected.append)
    dispatcher.subscribe(ScanCompletedEvent, completed.append)

    results = await run_scan(source, scanner, dispatcher, symbols=["AAPL", "MSFT"])

    assert set(results) == {"AAPL", "MSFT"}
    assert [(e.symbol, e.pattern.anchor_index) for e in detected] == [
        ("AAPL", 27),
        ("AAPL", 24),
        ("MSFT", 27),
        ("MSFT", 24),
    ]
    assert detected[0].candle_timestamp == regression_candles[27].timestamp
    assert completed[0].patterns_found == 4
    assert completed[0].symbols_failed == 0


@pytest.mark.asyncio
async def test_run_scan_skips_failed_and_empty_symbols(config, regression_candles, store, caplog):
    source = FakeSource({"AAPL": regression_candles}, fail={"MSFT"})
    scanner = PatternScanner(config, store)
    dispatcher = EventDispatcher()
    completed = []
    dispatcher.subscribe(ScanCompletedEvent, completed.append)

    with caplog.at_level(logging.ERROR):
        results = await run_scan(source, scanner, dispatcher)

    assert list(results) == ["AAPL"]
    assert [s for s, _ in source.requested] == ["AAPL", "MSFT", "GOOGL", "TSLA"]
    assert all(tf == "15m" for _, tf in source.requested)
    assert completed[0].symbols_failed == 3
    assert "Error fetching candles for MSFT" in caplog.text
    assert "No data received for GOOGL" in caplog.text


@pytest.mark.asyncio
async def test_second_cycle_reports_nothing(config, regression_candles, store):
    source = FakeSource({"AAPL": regression_candles})
    scanner = PatternScanner(config, store)

    first = await run_scan(source, scanner, symbols=["AAPL"])
    second = await run_scan(source, scanner, symbols=["AAPL"])

    assert len(first["AAPL"]) == 2
    assert second["AAPL"] == []


@pytest.mark.asyncio
async def test_history_subscribes_to_detected_patterns(config, regression_candles, store):
    source = FakeSource({"TSLA": regression_candles})
    dispatcher = EventDispatcher()
    history = AlertHistory()
    dispatcher.subscribe(PatternDetectedEvent, history.on_pattern_detected)

    await run_scan(source, PatternScanner(config, store), dispatcher, symbols=["TSLA"])

    assert [r.title for r in history.recent()] == [
        "TSLA Alert: sequential",
        "TSLA Alert: simultaneous",
    ]


def test_run_scans_manages_source_lifecycle(config, regression_candles):
    source = FakeSource({"AAPL": regression_candles})
    store = InMemoryWatermarkStore()

    results = run_scans(config, lambda: source, store, setup_logging=False)

    assert source.started and source.closed
    assert len(results["AAPL"]) == 2
    assert store.get("AAPL") == regression_candles[-1].timestamp


def test_run_scans_closes_source_on_error(config, regression_candles):
    source = FakeSource({"AAPL": regression_candles})
    with patch("crossdesk.runner.run_scan", AsyncMock(side_effect=RuntimeError("boom"))):
        with pytest.raises(RuntimeError, match="boom"):
            run_scans(config, lambda: source, InMemoryWatermarkStore(), setup_logging=False)
    assert source.started and source.closed


@pytest.mark.asyncio
async def test_store_failure_skips_symbol(config, regression_candles, caplog):
    class BrokenStore(InMemoryWatermarkStore):
        def get(self, key):
            if key == "AAPL":
                raise RuntimeError("driver bug")
            return super().get(key)

    source = FakeSource({"AAPL": regression_candles, "MSFT": regression_candles})
    dispatcher = EventDispatcher()
    completed = []
    dispatcher.subscribe(ScanCompletedEvent, completed.append)

    with caplog.at_level(logging.ERROR):
        results = await run_scan(
            source, PatternScanner(config, BrokenStore()), dispatcher, symbols=["AAPL", "MSFT"]
        )

    assert list(results) == ["MSFT"]
    assert completed[0].symbols_failed == 1
    assert "Error processing AAPL" in caplog.text


def test_configure_logging_is_non_destructive():
    root = logging.getLogger()
    before = list(root.handlers)
    sentinel = logging.NullHandler()
    root.addHandler(sentinel)
    try:
        configure_logging("DEBUG")
        assert root.handlers == before + [sentinel]
    finally:
        root.removeHandler(sentinel)
