# tests/conftest.py
import os
import sys
from datetime import datetime, timedelta, timezone

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from crossdesk.config import ScanConfig
from crossdesk.marketdata import Candle
from crossdesk.watermark import InMemoryWatermarkStore


# 21 candles of accelerating decline, a four-candle rally, then a crash.
# EMA(9)/EMA(21): bullish cross at 24, bearish at 27.
# MACD(3, 10, 4) vs signal: bullish cross at 21, bearish at 27.
REGRESSION_CLOSES = [
    100.00, 99.47, 98.88, 98.23, 97.52, 96.75, 95.92, 95.03, 94.08, 93.07,
    92.00, 90.87, 89.68, 88.43, 87.12, 85.75, 84.32, 82.83, 81.28, 79.67,
    78.00, 92.0, 98.0, 104.0, 108.0, 107.0, 104.0, 76.0, 75.0, 74.0,
]

BASE_TIME = datetime(2026, 1, 5, 14, 30, tzinfo=timezone.utc)


def make_candles(closes, start=BASE_TIME, step_minutes=15):
    """Build candles with ascending ISO timestamps around each close."""
    candles = []
    for i, close in enumerate(closes):
        ts = (start + timedelta(minutes=step_minutes * i)).strftime("%Y-%m-%dT%H:%M:%SZ")
        candles.append(
            Candle(
                timestamp=ts,
                open=close,
                high=close + 0.5,
                low=close - 0.5,
                close=close,
                volume=1000.0,
            )
        )
    return candles


@pytest.fixture(name="make_candles")
def make_candles_fixture():
    return make_candles


@pytest.fixture
def regression_candles():
    return make_candles(REGRESSION_CLOSES)


@pytest.fixture
def regression_config():
    return ScanConfig(
        max_candle_window=6,
        ema_fast_period=9,
        ema_slow_period=21,
        macd_fast=3,
        macd_slow=10,
        macd_signal=4,
        symbols=("AAPL",),
    )


@pytest.fixture
def store():
    return InMemoryWatermarkStore()
