from dataclasses import dataclass


@dataclass(frozen=True)
class Candle:
    """
    Represents a single OHLCV candle.

    Attributes:
        timestamp: Sortable timestamp, either an ISO 8601 string or an
            integer (e.g. milliseconds since epoch). A batch never mixes the two.
        open: Opening price
        high: Highest price during period
        low: Lowest price during period
        close: Closing price
        volume: Trading volume (or 0 if unavailable)
    """

    timestamp: str | int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    def __repr__(self) -> str:
        return (
            f"Candle(timestamp={self.timestamp}, "
            f"O={self.open:.5f}, H={self.high:.5f}, "
            f"L={self.low:.5f}, C={self.close:.5f}, "
            f"V={self.volume:.0f})"
        )
