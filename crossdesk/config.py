from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


__all__ = [
    "DEFAULT_SYMBOLS",
    "ScanConfig",
    "TIMEFRAME_MINUTES",
    "timeframe_minutes",
]


DEFAULT_SYMBOLS = ("AAPL", "MSFT", "GOOGL", "AMZN", "TSLA")

TIMEFRAME_MINUTES: dict[str, int] = {
    "1m": 1,
    "5m": 5,
    "15m": 15,
    "30m": 30,
    "1h": 60,
    "4h": 240,
    "1d": 1440,
}


def timeframe_minutes(timeframe: str) -> int:
    """Polling interval in minutes for a candle timeframe such as ``"15m"``."""
    try:
        return TIMEFRAME_MINUTES[timeframe.strip().lower()]
    except (KeyError, AttributeError) as exc:
        raise ValueError(f"Unsupported timeframe: {timeframe!r}") from exc


# Accepted spellings for each field: snake_case first, then the camelCase
# used by the browser extension's stored config.
_ALIASES: dict[str, tuple[str, ...]] = {
    "simultaneous_crossovers": ("simultaneous_crossovers", "simultaneousCrossovers"),
    "sequential_crossovers": ("sequential_crossovers", "sequentialCrossovers"),
    "max_candle_window": ("max_candle_window", "maxCandleWindow"),
    "ema_fast_period": ("ema_fast_period", "emaFastPeriod"),
    "ema_slow_period": ("ema_slow_period", "emaSlowPeriod"),
    "macd_fast": ("macd_fast", "macdFast"),
    "macd_slow": ("macd_slow", "macdSlow"),
    "macd_signal": ("macd_signal", "macdSignal"),
}


def _lookup(sources: list[Mapping[str, Any]], name: str) -> Any:
    for src in sources:
        for key in _ALIASES[name]:
            if key in src:
                return src[key]
    return None


def _as_int(name: str, value: Any, minimum: int) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    try:
        result = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} is not an integer: {value!r}") from exc
    if result != value and not isinstance(value, str):
        raise ValueError(f"{name} must be a whole number, got {value!r}")
    if result < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {result}")
    return result


def _as_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValueError(f"{name} must be a boolean, got {value!r}")


@dataclass(frozen=True)
class ScanConfig:
    """Settings for one crossover scanning cycle."""

    simultaneous_crossovers: bool = True
    sequential_crossovers: bool = True
    max_candle_window: int = 6
    ema_fast_period: int = 9
    ema_slow_period: int = 21
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9
    symbols: tuple[str, ...] = field(default=DEFAULT_SYMBOLS)
    timeframe: str = "15m"

    def __post_init__(self):
        if self.max_candle_window < 1:
            raise ValueError(f"max_candle_window must be >= 1, got {self.max_candle_window}")
        for name in ("ema_fast_period", "ema_slow_period", "macd_fast", "macd_slow", "macd_signal"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be >= 1, got {getattr(self, name)}")
        if self.macd_fast >= self.macd_slow:
            raise ValueError(
                f"macd_fast ({self.macd_fast}) must be smaller than macd_slow ({self.macd_slow})"
            )
        timeframe_minutes(self.timeframe)

    @property
    def poll_interval_minutes(self) -> int:
        return timeframe_minutes(self.timeframe)

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> ScanConfig:
        """Validate and construct from a raw config dict.

        Accepts flat keys or a nested ``notificationSettings`` (or
        ``notification_settings``) block, in snake_case or camelCase.
        Missing keys fall back to defaults. Raises ``ValueError`` with a
        clear message on bad values instead of letting ``TypeError``
        propagate.
        """
        if not isinstance(raw, Mapping):
            raise ValueError(f"config must be a mapping, got {type(raw).__name__}")

        sources: list[Mapping[str, Any]] = []
        for nested_key in ("notificationSettings", "notification_settings"):
            nested = raw.get(nested_key)
            if nested is not None:
                if not isinstance(nested, Mapping):
                    raise ValueError(f"{nested_key} must be a mapping")
                sources.append(nested)
        sources.append(raw)

        kwargs: dict[str, Any] = {}
        for name in ("simultaneous_crossovers", "sequential_crossovers"):
            value = _lookup(sources, name)
            if value is not None:
                kwargs[name] = _as_bool(name, value)
        for name in ("max_candle_window", "ema_fast_period", "ema_slow_period",
                     "macd_fast", "macd_slow", "macd_signal"):
            value = _lookup(sources, name)
            if value is not None:
                kwargs[name] = _as_int(name, value, minimum=1)

        symbols = raw.get("symbols")
        if symbols is not None:
            if isinstance(symbols, str) or not all(isinstance(s, str) and s.strip() for s in symbols):
                raise ValueError("symbols must be a list of non-empty strings")
            kwargs["symbols"] = tuple(s.strip().upper() for s in symbols)

        timeframe = raw.get("timeframe")
        if timeframe is not None:
            timeframe_minutes(timeframe)
            kwargs["timeframe"] = timeframe.strip().lower()

        return cls(**kwargs)
