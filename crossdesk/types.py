"""Enumerations shared across the crossover engine."""

from enum import Enum


class Direction(str, Enum):
    """Direction of a crossover.

    BULLISH means the first series moved from at-or-below the second to
    strictly above it; BEARISH is the mirror image.
    """
    BULLISH = "bullish"
    BEARISH = "bearish"


class CrossoverKind(str, Enum):
    """Which pair of signal lines produced a crossover."""
    EMA = "ema"
    MACD = "macd"


class PatternType(str, Enum):
    SIMULTANEOUS = "simultaneous"
    SEQUENTIAL = "sequential"


class SequenceOrder(str, Enum):
    """Which crossover kind came first in a sequential pattern."""
    EMA_THEN_MACD = "ema-then-macd"
    MACD_THEN_EMA = "macd-then-ema"

    @property
    def first(self) -> CrossoverKind:
        return CrossoverKind.EMA if self is SequenceOrder.EMA_THEN_MACD else CrossoverKind.MACD

    @property
    def second(self) -> CrossoverKind:
        return CrossoverKind.MACD if self is SequenceOrder.EMA_THEN_MACD else CrossoverKind.EMA
