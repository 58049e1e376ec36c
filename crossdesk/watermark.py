"""
Per-symbol high-water marks for already-reported patterns.

A watermark is the timestamp of the last candle processed for a symbol.
Patterns anchored on a candle at or before the watermark have already been
reported and are dropped on the next cycle.
"""

import json
import logging
import threading
import weakref
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

from crossdesk.errors import InvalidInputError, StoreUnavailableError
from crossdesk.marketdata import Candle
from crossdesk.patterns import PatternEvent


log = logging.getLogger(__name__)


__all__ = [
    "InMemoryWatermarkStore",
    "JsonFileWatermarkStore",
    "KeyLocks",
    "Timestamp",
    "WatermarkFilter",
    "WatermarkStore",
]


Timestamp = str | int


class WatermarkStore(Protocol):
    """
    Minimal key-value interface the filter persists watermarks through.

    Adapters may raise any exception on failure; :class:`WatermarkFilter`
    reports every error from ``get`` or ``set`` as
    :class:`~crossdesk.errors.StoreUnavailableError`.

    A store may also provide ``lock_for(key)`` returning a lock shared by
    every filter using that store. Stores without one get a lock registry
    keyed on the store object.
    """

    def get(self, key: str) -> Timestamp | None:
        ...

    def set(self, key: str, value: Timestamp) -> None:
        ...


class KeyLocks:
    """Lazily created ``threading.Lock`` per key."""

    def __init__(self):
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def __call__(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock


_store_locks: "weakref.WeakKeyDictionary[Any, KeyLocks]" = weakref.WeakKeyDictionary()
_store_locks_guard = threading.Lock()


def _locks_for_store(store: WatermarkStore) -> Callable[[str], threading.Lock]:
    lock_for = getattr(store, "lock_for", None)
    if callable(lock_for):
        return lock_for

    with _store_locks_guard:
        try:
            locks = _store_locks.get(store)
            if locks is None:
                locks = _store_locks[store] = KeyLocks()
        except TypeError:
            log.warning(
                "%s cannot be weakly referenced; symbol locks are per filter",
                type(store).__name__,
            )
            locks = KeyLocks()
        return locks


class InMemoryWatermarkStore:
    """Dict-backed store, for tests and single-process hosts."""

    def __init__(self, initial: dict[str, Timestamp] | None = None):
        self._data: dict[str, Timestamp] = dict(initial or {})
        self.lock_for = KeyLocks()

    def get(self, key: str) -> Timestamp | None:
        return self._data.get(key)

    def set(self, key: str, value: Timestamp) -> None:
        self._data[key] = value


class JsonFileWatermarkStore:
    """
    Persists all watermarks in a single JSON file.

    Write pattern:
      Every :meth:`set` rewrites the whole document atomically (write to
      ``.tmp``, then rename). The in-memory view is only updated once the
      file write has succeeded.

    Read pattern:
      The file is loaded lazily on first access. A missing file means no
      symbol has been processed yet.
    """

    FILENAME = "watermarks.json"

    def __init__(self, store_dir: Path):
        self._dir = Path(store_dir)
        self._path = self._dir / self.FILENAME
        self._tmp_path = self._dir / f".{self.FILENAME}.tmp"
        self._data: dict[str, Timestamp] | None = None
        self._lock = threading.Lock()
        self.lock_for = KeyLocks()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, Timestamp]:
        if self._data is not None:
            return self._data

        if not self._path.exists():
            self._data = {}
            return self._data

        try:
            raw = json.loads(self._path.read_text())
        except (OSError, ValueError) as exc:
            raise StoreUnavailableError(
                f"Failed to read watermarks from {self._path}: {exc}"
            ) from exc

        marks = raw.get("watermarks", {}) if isinstance(raw, dict) else None
        if not isinstance(marks, dict):
            raise StoreUnavailableError(f"Malformed watermark file {self._path}")

        self._data = dict(marks)
        log.debug("Loaded %d watermarks from %s", len(self._data), self._path)
        return self._data

    def get(self, key: str) -> Timestamp | None:
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, value: Timestamp) -> None:
        with self._lock:
            updated = dict(self._load())
            updated[key] = value

            doc: dict[str, Any] = {
                "version": 1,
                "updated_at": datetime.now(timezone.utc).isoformat(),
                "watermarks": updated,
            }
            try:
                self._dir.mkdir(parents=True, exist_ok=True)
                self._tmp_path.write_text(json.dumps(doc, indent=2))
                self._tmp_path.replace(self._path)
            except OSError as exc:
                raise StoreUnavailableError(
                    f"Failed to write watermark for {key} to {self._path}: {exc}"
                ) from exc

            self._data = updated


class WatermarkFilter:
    """
    Drops patterns already reported for a symbol and advances its watermark.

    The read-filter-write sequence runs under a per-symbol lock tied to the
    store, so overlapping cycles for the same symbol cannot interleave even
    when they come from different filters or scanners. Different symbols
    proceed in parallel.
    """

    def __init__(self, store: WatermarkStore):
        self.store = store
        self._lock_for = _locks_for_store(store)

    def _read(self, symbol: str) -> Timestamp | None:
        try:
            return self.store.get(symbol)
        except StoreUnavailableError:
            raise
        except Exception as exc:
            raise StoreUnavailableError(f"Failed to read watermark for {symbol}: {exc}") from exc

    def _write(self, symbol: str, value: Timestamp) -> None:
        try:
            self.store.set(symbol, value)
        except StoreUnavailableError:
            raise
        except Exception as exc:
            raise StoreUnavailableError(f"Failed to write watermark for {symbol}: {exc}") from exc

    def filter_new(
        self,
        symbol: str,
        events: Sequence[PatternEvent],
        candles: Sequence[Candle],
    ) -> list[PatternEvent]:
        """
        Keep only patterns anchored on candles newer than the stored watermark.

        The watermark is then set to the last candle's timestamp, even when
        nothing survives, so re-processing the same batch returns nothing.

        Raises:
            InvalidInputError: if a pattern's anchor lies outside ``candles``
                or timestamps cannot be compared with the watermark
            StoreUnavailableError: if the store cannot be read or written;
                no patterns are returned in that case
        """
        if not candles:
            log.debug("%s: empty candle batch, watermark unchanged", symbol)
            return []

        n = len(candles)
        for ev in events:
            if not 0 <= ev.anchor_index < n:
                raise InvalidInputError(
                    f"{symbol}: pattern anchor {ev.anchor_index} outside candle batch of {n}"
                )

        with self._lock_for(symbol):
            last_seen = self._read(symbol)

            if last_seen is None:
                fresh = list(events)
            else:
                try:
                    fresh = [
                        ev for ev in events
                        if candles[ev.anchor_index].timestamp > last_seen
                    ]
                except TypeError as exc:
                    raise InvalidInputError(
                        f"{symbol}: candle timestamps are not comparable with watermark {last_seen!r}"
                    ) from exc

            latest = candles[-1].timestamp
            self._write(symbol, latest)

        log.debug(
            "%s: %d of %d patterns are new (watermark %r -> %r)",
            symbol,
            len(fresh),
            len(events),
            last_seen,
            latest,
        )
        return fresh
