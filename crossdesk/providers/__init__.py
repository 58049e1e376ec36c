from .base import CandleSource

__all__ = ["CandleSource"]
