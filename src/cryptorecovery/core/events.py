"""In-process event system between the position book and its front end.

The book and the lookup helpers publish what happened; whatever renders
the planner (the CLI today) subscribes and decides how to show it.
Transient user-visible messages travel as :class:`Notice` events so that
service failures never have to be raised into the caller.

Usage::

    bus = EventBus()
    bus.subscribe(Notice, lambda n: print(n.message))
    bus.publish(Notice(message="Price refresh failed", level=NoticeLevel.WARNING))
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Type

from cryptorecovery.models.position import Position
from cryptorecovery.models.search import CoinSearchResult

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Event types
# ---------------------------------------------------------------------------


class NoticeLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    """A transient message for the user (success, warning or failure)."""

    message: str
    level: NoticeLevel = NoticeLevel.INFO


@dataclass(frozen=True)
class PositionsChanged:
    """Emitted after every committed change to the position book."""

    version: int
    active_id: str


@dataclass(frozen=True)
class RebuyExecuted:
    """Emitted when a re-buy has been folded into a position."""

    before: Position
    after: Position
    fill_price: float
    cost: float
    level: int | None = None


@dataclass(frozen=True)
class PriceRefreshed:
    """Emitted when a lookup delivered a fresh current price."""

    position_id: str
    coin_id: str
    price: float


@dataclass(frozen=True)
class SearchResultsReady:
    """Emitted when a non-superseded symbol search finished."""

    query: str
    results: tuple[CoinSearchResult, ...]


EventHandler = Callable[[Any], None]


# ---------------------------------------------------------------------------
# EventBus
# ---------------------------------------------------------------------------


class EventBus:
    """In-process pub/sub event bus.

    Thread-safe.  Handlers run synchronously on the publishing thread (the
    debounced search publishes from its timer thread).
    """

    def __init__(self) -> None:
        self._handlers: dict[Type, list[EventHandler]] = {}
        self._lock = threading.Lock()

    def subscribe(self, event_type: Type, handler: EventHandler) -> None:
        """Register *handler* to be called when *event_type* is published."""
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)

    def unsubscribe(self, event_type: Type, handler: EventHandler) -> None:
        """Remove *handler* from *event_type* subscribers, if present."""
        with self._lock:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

    def publish(self, event: object) -> None:
        """Dispatch *event* to every handler registered for its type.

        A failing handler is logged and the remaining handlers still run.
        """
        with self._lock:
            handlers = list(self._handlers.get(type(event), []))

        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Event handler %s failed for %s",
                    getattr(handler, "__name__", repr(handler)),
                    type(event).__name__,
                )

    def clear(self) -> None:
        with self._lock:
            self._handlers.clear()
