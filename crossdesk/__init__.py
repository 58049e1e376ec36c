# crossdesk/__init__.py
"""
Crossdesk - EMA/MACD crossover pattern engine.

Turns a time-ordered batch of price candles into simultaneous and
sequential crossover pattern events, suppressing patterns that were
already reported for a symbol.
"""

from .config import ScanConfig
from .crossover import CrossoverEvent, detect_crossovers
from .errors import CrossdeskError, InvalidInputError, StoreUnavailableError
from .indicators import MACDResult, compute_ema, compute_macd
from .marketdata import Candle, ChartHistory
from .patterns import PatternEvent, SequentialPattern, SimultaneousPattern
from .runner import run_scan, run_scans
from .scanner import PatternScanner
from .types import CrossoverKind, Direction, PatternType, SequenceOrder
from .watermark import InMemoryWatermarkStore, JsonFileWatermarkStore, WatermarkFilter

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "Candle",
    "ChartHistory",
    "CrossdeskError",
    "CrossoverEvent",
    "CrossoverKind",
    "Direction",
    "InMemoryWatermarkStore",
    "InvalidInputError",
    "JsonFileWatermarkStore",
    "MACDResult",
    "PatternEvent",
    "PatternScanner",
    "PatternType",
    "ScanConfig",
    "SequenceOrder",
    "SequentialPattern",
    "SimultaneousPattern",
    "StoreUnavailableError",
    "WatermarkFilter",
    "compute_ema",
    "compute_macd",
    "detect_crossovers",
    "run_scan",
    "run_scans",
]
