from collections import deque
from collections.abc import Iterable
from typing import Optional

import numpy as np

from crossdesk.errors import InvalidInputError
from crossdesk.marketdata.candle import Candle


class ChartHistory:
    """
    Holds an ascending, duplicate-free batch of candles for one symbol/timeframe.

    Provides convenient access to price arrays needed for indicator calculations.
    Ordering is checked on the way in; downstream code never re-sorts.

    Example:
        history = ChartHistory("AAPL", "15m")
        history.extend(candles)

        closes = history.get_closes()
        recent = history.get_closes(count=20)  # Last 20 candles only
    """

    def __init__(self, symbol: str, period: str, max_length: int = 200):
        """
        Initialize chart history.

        Args:
            symbol: Ticker or instrument identifier
            period: Timeframe (e.g., "15m", "1h")
            max_length: Maximum number of candles to retain
        """
        self.symbol = symbol
        self.period = period
        self.max_length = max_length
        self.candles: deque[Candle] = deque(maxlen=max_length)

    @classmethod
    def from_candles(
        cls, symbol: str, period: str, candles: Iterable[Candle], max_length: int = 200
    ) -> "ChartHistory":
        history = cls(symbol, period, max_length=max_length)
        history.extend(candles)
        return history

    def add_candle(self, candle: Candle) -> None:
        """
        Add a new candle to history.

        Automatically removes oldest candle if at max_length.

        Raises:
            InvalidInputError: if the candle does not strictly follow the latest one
        """
        latest = self.latest
        if latest is not None:
            try:
                ordered = candle.timestamp > latest.timestamp
            except TypeError as exc:
                raise InvalidInputError(
                    f"{self.symbol}: cannot compare timestamps {latest.timestamp!r} and {candle.timestamp!r}"
                ) from exc
            if not ordered:
                raise InvalidInputError(
                    f"{self.symbol}: candle at {candle.timestamp!r} does not follow {latest.timestamp!r}"
                )
        self.candles.append(candle)

    def extend(self, candles: Iterable[Candle]) -> None:
        for candle in candles:
            self.add_candle(candle)

    def get_candles(self, count: Optional[int] = None) -> list[Candle]:
        """
        Get candle objects.

        Args:
            count: Number of most recent candles to return (None = all)

        Returns:
            List of Candle objects, oldest first
        """
        if count is None:
            return list(self.candles)
        return list(self.candles)[-count:]

    def get_timestamps(self, count: Optional[int] = None) -> list[str | int]:
        return [c.timestamp for c in self.get_candles(count)]

    def get_closes(self, count: Optional[int] = None) -> np.ndarray:
        """Get array of closing prices."""
        candles = self.get_candles(count)
        return np.array([c.close for c in candles], dtype=np.float64)

    @property
    def latest(self) -> Optional[Candle]:
        """Get the most recent candle, or None if empty."""
        return self.candles[-1] if self.candles else None

    def __len__(self) -> int:
        """Return number of candles in history."""
        return len(self.candles)

    def __repr__(self) -> str:
        return (
            f"ChartHistory(symbol={self.symbol}, period={self.period}, "
            f"candles={len(self)}/{self.max_length})"
        )
