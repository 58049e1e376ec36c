from .candle import Candle
from .chart_history import ChartHistory

__all__ = [
    "Candle",
    "ChartHistory",
]
