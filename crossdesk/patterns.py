"""
Composite crossover patterns.

Combines the EMA and MACD crossover streams into:

- simultaneous patterns: both kinds cross in the same direction on the same candle
- sequential patterns: one kind crosses, then the other follows in the same
  direction within ``max_window`` candles

Every qualifying pair is reported. A single EMA crossover can therefore appear
in several sequential patterns when more than one MACD crossover precedes it
inside the window.
"""

from bisect import bisect_right
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Union

from crossdesk.crossover import CrossoverEvent
from crossdesk.errors import InvalidInputError
from crossdesk.types import Direction, PatternType, SequenceOrder


__all__ = [
    "PatternEvent",
    "SequentialPattern",
    "SimultaneousPattern",
    "find_sequential",
    "find_simultaneous",
]


@dataclass(frozen=True)
class SimultaneousPattern:
    index: int
    direction: Direction

    @property
    def pattern_type(self) -> PatternType:
        return PatternType.SIMULTANEOUS

    @property
    def anchor_index(self) -> int:
        """Candle index used when checking whether the pattern was already reported."""
        return self.index

    @property
    def description(self) -> str:
        return f"Simultaneous {self.direction.value} crossover of both MACD and EMA"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.pattern_type.value,
            "index": self.index,
            "direction": self.direction.value,
            "description": self.description,
        }


@dataclass(frozen=True)
class SequentialPattern:
    first_index: int
    second_index: int
    direction: Direction
    sequence: SequenceOrder
    window: int

    def __post_init__(self):
        if self.window != self.second_index - self.first_index:
            raise ValueError(
                f"window ({self.window}) must equal second_index - first_index "
                f"({self.second_index - self.first_index})"
            )

    @property
    def pattern_type(self) -> PatternType:
        return PatternType.SEQUENTIAL

    @property
    def anchor_index(self) -> int:
        return self.second_index

    @property
    def description(self) -> str:
        first = self.sequence.first.value.upper()
        second = self.sequence.second.value.upper()
        return (
            f"{self.direction.value.capitalize()} {first} crossover followed by "
            f"{second} crossover within {self.window} candles"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.pattern_type.value,
            "first_index": self.first_index,
            "second_index": self.second_index,
            "direction": self.direction.value,
            "sequence": self.sequence.value,
            "window": self.window,
            "description": self.description,
        }


PatternEvent = Union[SimultaneousPattern, SequentialPattern]


def find_simultaneous(
    ema_events: Sequence[CrossoverEvent],
    macd_events: Sequence[CrossoverEvent],
) -> list[SimultaneousPattern]:
    """
    Pair EMA and MACD crossovers sharing both index and direction.

    Results follow the order of ``ema_events``. Duplicate events on one index
    yield one pattern per matching pair.
    """
    macd_by_key: dict[tuple[int, Direction], int] = defaultdict(int)
    for m in macd_events:
        macd_by_key[(m.index, m.direction)] += 1

    patterns: list[SimultaneousPattern] = []
    for e in ema_events:
        for _ in range(macd_by_key.get((e.index, e.direction), 0)):
            patterns.append(SimultaneousPattern(index=e.index, direction=e.direction))
    return patterns


def _index_by_direction(
    events: Sequence[CrossoverEvent],
) -> dict[Direction, list[int]]:
    by_direction: dict[Direction, list[int]] = defaultdict(list)
    for ev in events:
        by_direction[ev.direction].append(ev.index)
    for indices in by_direction.values():
        indices.sort()
    return by_direction


def _followers(
    leaders: Sequence[CrossoverEvent],
    followers: Sequence[CrossoverEvent],
    max_window: int,
    sequence: SequenceOrder,
) -> list[SequentialPattern]:
    follower_index = _index_by_direction(followers)
    patterns: list[SequentialPattern] = []

    for lead in leaders:
        indices = follower_index.get(lead.direction)
        if not indices:
            continue
        # Followers strictly after the leader and no more than max_window later
        lo = bisect_right(indices, lead.index)
        hi = bisect_right(indices, lead.index + max_window, lo=lo)
        for second in indices[lo:hi]:
            patterns.append(
                SequentialPattern(
                    first_index=lead.index,
                    second_index=second,
                    direction=lead.direction,
                    sequence=sequence,
                    window=second - lead.index,
                )
            )
    return patterns


def find_sequential(
    ema_events: Sequence[CrossoverEvent],
    macd_events: Sequence[CrossoverEvent],
    max_window: int,
) -> list[SequentialPattern]:
    """
    Find same-direction crossovers of different kinds within ``max_window`` candles.

    MACD-then-EMA pairs are listed first, then EMA-then-MACD pairs; within
    each group, ordered by the leading event and then by the following one.

    Raises:
        InvalidInputError: if ``max_window`` is below 1
    """
    if isinstance(max_window, bool) or not isinstance(max_window, int) or max_window < 1:
        raise InvalidInputError(f"max_window must be an integer >= 1, got {max_window!r}")

    return _followers(
        macd_events, ema_events, max_window, SequenceOrder.MACD_THEN_EMA
    ) + _followers(
        ema_events, macd_events, max_window, SequenceOrder.EMA_THEN_MACD
    )
