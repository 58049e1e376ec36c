import asyncio
import logging
from abc import ABC
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable

from crossdesk.patterns import PatternEvent

logger = logging.getLogger(__name__)


def event(cls):
    return dataclass(frozen=True, slots=True)(cls)


@dataclass(frozen=True, slots=True, kw_only=True)
class DomainEvent(ABC):
    timestamp: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


@event
class PatternDetectedEvent(DomainEvent):
    """Emitted once per newly reported crossover pattern."""

    symbol: str
    pattern: PatternEvent
    candle_timestamp: str | int


@event
class ScanCompletedEvent(DomainEvent):
    """Emitted after every configured symbol has been scanned."""

    symbols_scanned: int
    symbols_failed: int
    patterns_found: int


class EventDispatcher:
    """Async event dispatcher for domain events.

    Handlers can be sync or async functions. Exceptions in handlers are logged
    but don't stop dispatch to other handlers.
    """

    def __init__(self):
        self._handlers: dict[type[DomainEvent], list[Callable]] = defaultdict(list)

    def subscribe(
        self,
        event_type: type[DomainEvent],
        handler: Callable[[DomainEvent], None | Awaitable[None]],
    ):
        """Register a handler for an event type.

        Args:
            event_type: The event class to subscribe to
            handler: Sync or async callable that accepts the event
        """
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: type[DomainEvent], handler: Callable):
        """Unregister a handler from an event type."""
        if handler in self._handlers[event_type]:
            self._handlers[event_type].remove(handler)

    async def publish(self, event: DomainEvent):
        """Dispatch event to all registered handlers.

        Handlers are called sequentially (await each). A failing notification
        or history handler is logged and doesn't prevent the others from running.

        Args:
            event: The domain event to dispatch
        """
        handlers = self._handlers[type(event)]
        for handler in handlers:
            try:
                result = handler(event)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                logger.error(
                    f"Event handler {getattr(handler, '__name__', handler)!s} failed for {event.__class__.__name__}: {e}",
                    exc_info=True,
                )
