"""Tests for crossdesk.recording.history - bounded alert history."""

import json

import pytest

from crossdesk.events import PatternDetectedEvent
from crossdesk.patterns import SequentialPattern, SimultaneousPattern
from crossdesk.recording import AlertHistory, format_alert_title
from crossdesk.types import Direction, SequenceOrder


SIMULTANEOUS = SimultaneousPattern(index=27, direction=Direction.BEARISH)
SEQUENTIAL = SequentialPattern(
    first_index=21,
    second_index=24,
    direction=Direction.BULLISH,
    sequence=SequenceOrder.MACD_THEN_EMA,
    window=3,
)


@pytest.fixture
def history_dir(tmp_path):
    return tmp_path / "history"


def test_format_alert_title():
    assert format_alert_title("AAPL", SIMULTANEOUS) == "AAPL Alert: simultaneous"
    assert format_alert_title("TSLA", SEQUENTIAL) == "TSLA Alert: sequential"


class TestAlertHistory:

    def test_record_is_newest_first(self):
        history = AlertHistory()
        history.record("AAPL", SEQUENTIAL, "2026-01-05T20:30:00Z")
        history.record("MSFT", SIMULTANEOUS, "2026-01-05T21:15:00Z")

        recent = history.recent()
        assert [r.symbol for r in recent] == ["MSFT", "AAPL"]
        assert recent[0].title == "MSFT Alert: simultaneous"
        assert recent[1].pattern["sequence"] == "macd-then-ema"

    def test_capped_at_max_entries(self):
        history = AlertHistory(max_entries=3)
        for i in range(5):
            history.record(f"SYM{i}", SIMULTANEOUS, i)

        assert len(history) == 3
        assert [r.symbol for r in history.recent()] == ["SYM4", "SYM3", "SYM2"]

    def test_default_cap_and_limit(self):
        history = AlertHistory()
        for i in range(120):
            history.record("AAPL", SIMULTANEOUS, i)

        assert len(history) == 100
        assert len(history.recent()) == 50
        assert len(history.recent(limit=10)) == 10

    def test_on_pattern_detected_records(self):
        history = AlertHistory()
        history.on_pattern_detected(
            PatternDetectedEvent(symbol="AAPL", pattern=SEQUENTIAL, candle_timestamp="t24")
        )
        assert history.recent()[0].candle_timestamp == "t24"

    def test_persists_and_reloads(self, history_dir):
        history = AlertHistory(history_dir)
        history.record("AAPL", SEQUENTIAL, "2026-01-05T20:30:00Z")

        data = json.loads((history_dir / "alert_history.json").read_text())
        assert data["version"] == 1
        assert data["alerts"][0]["symbol"] == "AAPL"

        reloaded = AlertHistory(history_dir)
        assert len(reloaded) == 1
        assert reloaded.recent()[0].pattern == SEQUENTIAL.to_dict()

    def test_clear_removes_file(self, history_dir):
        history = AlertHistory(history_dir)
        history.record("AAPL", SIMULTANEOUS, "x")
        history.clear()

        assert len(history) == 0
        assert not (history_dir / "alert_history.json").exists()

    def test_corrupt_file_starts_empty(self, history_dir):
        history_dir.mkdir(parents=True)
        (history_dir / "alert_history.json").write_text("not json")
        assert len(AlertHistory(history_dir)) == 0
