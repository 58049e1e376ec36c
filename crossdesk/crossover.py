"""Crossover detection between two index-aligned value series."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

from crossdesk.errors import InvalidInputError
from crossdesk.types import CrossoverKind, Direction


__all__ = [
    "CrossoverEvent",
    "detect_crossovers",
    "detect_ema_crossovers",
    "detect_macd_crossovers",
]


@dataclass(frozen=True)
class CrossoverEvent:
    """A strict crossing of one series over another at a single candle index."""

    index: int
    direction: Direction
    kind: CrossoverKind


def detect_crossovers(
    series_a: Sequence[Optional[float]],
    series_b: Sequence[Optional[float]],
    kind: CrossoverKind,
) -> list[CrossoverEvent]:
    """
    Find every index where ``series_a`` crosses ``series_b``.

    Bullish at ``i``: ``a[i-1] <= b[i-1]`` and ``a[i] > b[i]``.
    Bearish at ``i``: ``a[i-1] >= b[i-1]`` and ``a[i] < b[i]``.

    The prior relation is non-strict so "touch then cross" counts, but a tie
    at ``i`` itself never produces an event. Indices where either series is
    undefined on ``i`` or ``i-1`` are skipped.

    Returns:
        Events in ascending index order, at most one per index
    """
    if len(series_a) != len(series_b):
        raise InvalidInputError(
            f"series lengths differ: {len(series_a)} != {len(series_b)}"
        )

    events: list[CrossoverEvent] = []
    for i in range(1, len(series_a)):
        prev_a, prev_b = series_a[i - 1], series_b[i - 1]
        cur_a, cur_b = series_a[i], series_b[i]
        if prev_a is None or prev_b is None or cur_a is None or cur_b is None:
            continue

        if prev_a <= prev_b and cur_a > cur_b:
            events.append(CrossoverEvent(index=i, direction=Direction.BULLISH, kind=kind))
        elif prev_a >= prev_b and cur_a < cur_b:
            events.append(CrossoverEvent(index=i, direction=Direction.BEARISH, kind=kind))

    return events


def detect_ema_crossovers(
    ema_fast: Sequence[Optional[float]], ema_slow: Sequence[Optional[float]]
) -> list[CrossoverEvent]:
    """Fast EMA crossing the slow EMA."""
    return detect_crossovers(ema_fast, ema_slow, CrossoverKind.EMA)


def detect_macd_crossovers(
    macd_line: Sequence[Optional[float]], signal_line: Sequence[Optional[float]]
) -> list[CrossoverEvent]:
    """MACD line crossing its signal line."""
    return detect_crossovers(macd_line, signal_line, CrossoverKind.MACD)
