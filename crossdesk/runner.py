"""
Scan orchestration: fetch candles, detect patterns, publish events.
"""

import asyncio
import logging
import sys
from collections.abc import Callable, Sequence

from crossdesk.config import ScanConfig
from crossdesk.errors import CrossdeskError
from crossdesk.events import EventDispatcher, PatternDetectedEvent, ScanCompletedEvent
from crossdesk.patterns import PatternEvent
from crossdesk.providers import CandleSource
from crossdesk.scanner import PatternScanner
from crossdesk.watermark import WatermarkStore


log = logging.getLogger(__name__)


__all__ = [
    "configure_logging",
    "run_scan",
    "run_scans",
]


def configure_logging(level: str = "INFO", force: bool = False) -> None:
    """
    Configure root logger with console output.

    By default, this is non-destructive: if the root logger already has handlers,
    it will do nothing (assuming the application has configured logging).

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        force: If True, clear existing handlers and force this configuration
    """
    root_logger = logging.getLogger()

    if root_logger.hasHandlers() and not force:
        return

    root_logger.setLevel(level.upper())

    if force:
        root_logger.handlers.clear()

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)


async def run_scan(
    source: CandleSource,
    scanner: PatternScanner,
    dispatcher: EventDispatcher | None = None,
    symbols: Sequence[str] | None = None,
) -> dict[str, list[PatternEvent]]:
    """
    Run one scanning cycle over ``symbols`` (default: the scanner's configured symbols).

    A symbol whose fetch fails, returns no candles, or fails to scan is logged
    and skipped. Each new pattern is published as a
    :class:`PatternDetectedEvent`, followed by one :class:`ScanCompletedEvent`.
    The source is not started or closed here.
    """
    config = scanner.config
    dispatcher = dispatcher or EventDispatcher()
    symbols = list(symbols) if symbols is not None else list(config.symbols)

    results: dict[str, list[PatternEvent]] = {}
    failed = 0

    for symbol in symbols:
        try:
            candles = await source.get_candles(symbol, config.timeframe)
        except Exception:
            log.exception("Error fetching candles for %s", symbol)
            failed += 1
            continue

        if not candles:
            log.error("No data received for %s", symbol)
            failed += 1
            continue

        try:
            patterns = scanner.scan(symbol, candles)
        except CrossdeskError:
            log.exception("Error processing %s", symbol)
            failed += 1
            continue

        results[symbol] = patterns
        for pattern in patterns:
            await dispatcher.publish(
                PatternDetectedEvent(
                    symbol=symbol,
                    pattern=pattern,
                    candle_timestamp=candles[pattern.anchor_index].timestamp,
                )
            )

    found = sum(len(p) for p in results.values())
    log.info(
        "Scan complete: %d symbol%s scanned, %d failed, %d new pattern%s",
        len(results),
        "s" if len(results) != 1 else "",
        failed,
        found,
        "s" if found != 1 else "",
    )
    await dispatcher.publish(
        ScanCompletedEvent(
            symbols_scanned=len(results),
            symbols_failed=failed,
            patterns_found=found,
        )
    )
    return results


async def _async_run_with_source_factory(
    source_factory: Callable[[], CandleSource],
    scanner: PatternScanner,
    dispatcher: EventDispatcher | None,
) -> dict[str, list[PatternEvent]]:
    source = source_factory()
    await source.start()
    try:
        return await run_scan(source, scanner, dispatcher)
    finally:
        # Always close the source even if scanning fails.
        await source.close()


def run_scans(
    config: ScanConfig,
    source_factory: Callable[[], CandleSource],
    watermarks: WatermarkStore,
    dispatcher: EventDispatcher | None = None,
    log_level: str | None = None,
    setup_logging: bool = True,
) -> dict[str, list[PatternEvent]]:
    """
    Run a single scanning cycle against a market-data source.

    This is the synchronous entry point. It manages the asyncio event loop
    and the lifecycle of the source:
      - Construct the source via ``source_factory()`` and await ``start()``.
      - Scan every configured symbol and publish events to ``dispatcher``.
      - Await ``close()`` on completion or error.

    Args:
        config: Scan settings, including the symbols and timeframe
        source_factory: A callable that returns an unstarted ``CandleSource``
        watermarks: Store holding each symbol's last processed candle timestamp
        dispatcher: Receives ``PatternDetectedEvent`` and ``ScanCompletedEvent``
        log_level: The logging level to configure; defaults to "INFO"
        setup_logging: If ``True``, configures the root logger

    Returns:
        New patterns per successfully scanned symbol
    """
    if setup_logging:
        configure_logging(log_level or "INFO")

    log.info(
        "Scanning %d symbol%s on %s candles: %s",
        len(config.symbols),
        "s" if len(config.symbols) != 1 else "",
        config.timeframe,
        ", ".join(config.symbols) if config.symbols else "(none)",
    )

    scanner = PatternScanner(config, watermarks)
    return asyncio.run(_async_run_with_source_factory(source_factory, scanner, dispatcher))
