"""
Provider-neutral interface for the market-data collaborator.

The engine never fetches data itself; hosts plug in a concrete source
(REST API client, CSV replay, test double).
"""

import abc
from collections.abc import Sequence

from crossdesk.marketdata import Candle


__all__ = ["CandleSource"]


class CandleSource(abc.ABC):
    """Abstract base for anything that can supply candle batches."""

    async def start(self) -> None:
        """Initialise the source (e.g. open a session). No-op by default."""
        return None

    async def close(self) -> None:
        """Close any underlying resources. No-op by default."""
        return None

    @abc.abstractmethod
    async def get_candles(self, symbol: str, timeframe: str) -> Sequence[Candle]:
        """
        Fetch the latest candles for ``symbol``.

        Returns:
            Candles sorted ascending by timestamp with no duplicates. An empty
            sequence means no data is available right now.
        """
        raise NotImplementedError
