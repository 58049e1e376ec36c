"""
Moving-average math over closing prices.

Every function here is pure: the same input always yields bit-identical
output. Positions without enough warm-up history are ``None`` rather than a
sentinel number, so callers can tell "not yet defined" from a real value.
"""

import logging
import numbers
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import numpy as np

from crossdesk.errors import InvalidInputError

if TYPE_CHECKING:
    from crossdesk.config import ScanConfig


log = logging.getLogger(__name__)


__all__ = [
    "IndicatorSnapshot",
    "MACDResult",
    "ValueSeries",
    "compute_ema",
    "compute_indicators",
    "compute_macd",
]


ValueSeries = list[Optional[float]]


@dataclass(frozen=True)
class MACDResult:
    """MACD line, signal line and histogram, index-aligned with the input prices."""

    macd_line: ValueSeries
    signal_line: ValueSeries
    histogram: ValueSeries


@dataclass(frozen=True)
class IndicatorSnapshot:
    """All series needed for crossover detection on one candle batch."""

    ema_fast: ValueSeries
    ema_slow: ValueSeries
    macd: MACDResult

    def __len__(self) -> int:
        return len(self.ema_fast)


def _is_real(value: object) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, (bool, np.bool_))


def _validate_prices(prices: Sequence[float] | np.ndarray) -> list[float]:
    # np.asarray would coerce "1.5" and True; only real numbers are prices
    if isinstance(prices, np.ndarray) and prices.dtype.kind in "iuf":
        pass
    elif isinstance(prices, np.ndarray) and prices.dtype.kind != "O":
        raise InvalidInputError(f"price series must contain only numbers, got dtype {prices.dtype}")
    elif isinstance(prices, (str, bytes)):
        raise InvalidInputError("price series must be a sequence of numbers, got a string")
    else:
        flat = prices.ravel() if isinstance(prices, np.ndarray) else prices
        for value in flat:
            if not _is_real(value):
                raise InvalidInputError(f"price series must contain only numbers, got {value!r}")

    try:
        arr = np.asarray(prices, dtype=np.float64)
    except (TypeError, ValueError, OverflowError) as exc:
        raise InvalidInputError("price series must contain only numbers") from exc

    if arr.ndim != 1:
        raise InvalidInputError(f"price series must be one-dimensional, got shape {arr.shape}")
    if arr.size == 0:
        raise InvalidInputError("price series is empty")
    if not np.all(np.isfinite(arr)):
        raise InvalidInputError("price series contains NaN or infinite values")

    return arr.tolist()


def _validate_period(name: str, period: int) -> int:
    if isinstance(period, bool) or not isinstance(period, (int, np.integer)):
        raise InvalidInputError(f"{name} must be an integer, got {period!r}")
    if period < 1:
        raise InvalidInputError(f"{name} must be >= 1, got {period}")
    return int(period)


def _ema(values: list[float], period: int) -> ValueSeries:
    # Seeded with the simple average of the first `period` values.
    n = len(values)
    if n < period:
        return [None] * n

    k = 2 / (period + 1)
    out: ValueSeries = [None] * (period - 1)

    ema = sum(values[:period]) / period
    out.append(ema)
    for price in values[period:]:
        ema = (price * k) + (ema * (1 - k))
        out.append(ema)

    return out


def compute_ema(prices: Sequence[float] | np.ndarray, period: int) -> ValueSeries:
    """
    Calculate an Exponential Moving Average.

    Args:
        prices: Price values, oldest first
        period: EMA period (>= 1)

    Returns:
        Series of the same length as ``prices``; indices ``0..period-2`` are
        None, and the whole series is None when fewer than ``period`` prices
        are supplied.

    Raises:
        InvalidInputError: for an empty or non-numeric series, or a bad period
    """
    period = _validate_period("period", period)
    values = _validate_prices(prices)
    return _ema(values, period)


def compute_macd(
    prices: Sequence[float] | np.ndarray,
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> MACDResult:
    """
    Calculate MACD (fast EMA - slow EMA), its signal line and histogram.

    The signal line is an EMA over the defined part of the MACD line only,
    left-padded with None back to the input length.
    """
    fast_period = _validate_period("fast_period", fast_period)
    slow_period = _validate_period("slow_period", slow_period)
    signal_period = _validate_period("signal_period", signal_period)
    if fast_period >= slow_period:
        raise InvalidInputError(
            f"fast_period ({fast_period}) must be smaller than slow_period ({slow_period})"
        )

    values = _validate_prices(prices)
    n = len(values)

    fast_ema = _ema(values, fast_period)
    slow_ema = _ema(values, slow_period)

    macd_line: ValueSeries = [
        f - s if f is not None and s is not None else None
        for f, s in zip(fast_ema, slow_ema)
    ]

    defined = [v for v in macd_line if v is not None]
    signal = _ema(defined, signal_period)
    signal_line: ValueSeries = [None] * (n - len(signal)) + signal

    histogram: ValueSeries = [
        m - s if m is not None and s is not None else None
        for m, s in zip(macd_line, signal_line)
    ]

    return MACDResult(macd_line=macd_line, signal_line=signal_line, histogram=histogram)


def compute_indicators(closes: Sequence[float] | np.ndarray, config: "ScanConfig") -> IndicatorSnapshot:
    """Compute the fast/slow EMAs and the MACD bundle for one batch of closes."""
    ema_fast = compute_ema(closes, config.ema_fast_period)
    ema_slow = compute_ema(closes, config.ema_slow_period)
    macd = compute_macd(
        closes,
        fast_period=config.macd_fast,
        slow_period=config.macd_slow,
        signal_period=config.macd_signal,
    )
    log.debug(
        "Computed indicators over %d closes (EMA %d/%d, MACD %d/%d/%d)",
        len(ema_fast),
        config.ema_fast_period,
        config.ema_slow_period,
        config.macd_fast,
        config.macd_slow,
        config.macd_signal,
    )
    return IndicatorSnapshot(ema_fast=ema_fast, ema_slow=ema_slow, macd=macd)
