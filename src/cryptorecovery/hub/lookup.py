"""Symbol search and price refresh around the position book.

Both lookups are slow and fallible, and a newer request always wins over
an older one still in flight.  Each request carries a generation number;
results whose generation is no longer current are dropped instead of
overwriting newer state.  Failures become :class:`Notice` events, never
exceptions in the caller.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from cryptorecovery.core.constants import DEFAULT_SEARCH_DEBOUNCE_SECONDS
from cryptorecovery.core.events import (
    EventBus,
    Notice,
    NoticeLevel,
    PriceRefreshed,
    SearchResultsReady,
)
from cryptorecovery.core.exceptions import PriceServiceError
from cryptorecovery.core.price_client import PriceLookupClient
from cryptorecovery.hub.book import PositionBook
from cryptorecovery.models.position import Position
from cryptorecovery.models.search import CoinSearchResult

logger = logging.getLogger(__name__)

TimerFactory = Callable[..., Any]


# ---------------------------------------------------------------------------
# Debounced search
# ---------------------------------------------------------------------------


class SearchSession:
    """Debounced symbol search where only the latest query may deliver.

    Parameters
    ----------
    client:
        Lookup service.
    bus:
        Receives :class:`SearchResultsReady` and failure notices.
    debounce_seconds:
        Quiet period after the last :meth:`submit` before the search runs.
    timer_factory:
        ``threading.Timer``-compatible factory; tests pass a manual timer.
    """

    def __init__(
        self,
        client: PriceLookupClient,
        bus: EventBus,
        debounce_seconds: float = DEFAULT_SEARCH_DEBOUNCE_SECONDS,
        timer_factory: TimerFactory = threading.Timer,
    ) -> None:
        self._client = client
        self._bus = bus
        self._debounce = debounce_seconds
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._generation = 0
        self._timer: Any = None
        self._results: tuple[CoinSearchResult, ...] = ()

    @property
    def results(self) -> tuple[CoinSearchResult, ...]:
        """Results of the most recent delivered search."""
        return self._results

    @property
    def generation(self) -> int:
        return self._generation

    def submit(self, query: str) -> int:
        """Schedule a search for *query*, superseding any pending one.

        A blank query clears the results at once.  Returns the generation
        assigned to this request.
        """
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._cancel_timer()
            if not query.strip():
                self._results = ()
            else:
                self._timer = self._timer_factory(
                    self._debounce, self._run, args=(generation, query)
                )
                self._timer.daemon = True
                self._timer.start()

        if not query.strip():
            self._bus.publish(SearchResultsReady(query="", results=()))
        return generation

    def search_now(self, query: str) -> tuple[CoinSearchResult, ...]:
        """Run a search synchronously (no debounce) and return its results."""
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._cancel_timer()
        self._run(generation, query)
        return self._results if generation == self._generation else ()

    def cancel(self) -> None:
        """Drop the pending search and ignore any search still running."""
        with self._lock:
            self._generation += 1
            self._cancel_timer()

    # -- internals ------------------------------------------------------------

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _run(self, generation: int, query: str) -> None:
        if not self._is_current(generation):
            return
        try:
            results = tuple(self._client.search(query))
        except PriceServiceError as exc:
            logger.warning("Search for %r failed: %s", query, exc)
            if self._is_current(generation):
                self._bus.publish(
                    Notice(message="Search failed: lookup service unavailable.", level=NoticeLevel.ERROR)
                )
            return

        with self._lock:
            if generation != self._generation:
                logger.debug("Dropping superseded search results for %r", query)
                return
            self._results = results
        self._bus.publish(SearchResultsReady(query=query, results=results))


# ---------------------------------------------------------------------------
# Price refresh
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RefreshTicket:
    """Identifies one in-flight price refresh."""

    position_id: str
    coin_id: str
    generation: int


class PriceRefresher:
    """Refresh positions' current prices without letting stale fetches win."""

    def __init__(self, client: PriceLookupClient, book: PositionBook) -> None:
        self._client = client
        self._book = book
        self._lock = threading.RLock()
        self._generations: dict[str, int] = {}

    def refresh(self, position_id: str | None = None) -> float | None:
        """Fetch and apply the price of *position_id* (default: active).

        Returns the applied price, or ``None`` if the position has no
        price-source id, the fetch failed, or the result was superseded.
        """
        pos = self._book.get(position_id) if position_id else self._book.active
        if not pos.can_refresh:
            logger.debug("Position %s has no coin id; nothing to refresh", pos.id)
            return None

        ticket = self.begin(pos)
        try:
            price = self._client.fetch_price(ticket.coin_id)
        except PriceServiceError as exc:
            logger.warning("Price refresh for %s (%s) failed: %s", pos.symbol, ticket.coin_id, exc)
            self._book.bus.publish(
                Notice(message=f"Price sync failed for {pos.symbol}.", level=NoticeLevel.WARNING)
            )
            return None
        return self.apply(ticket, price)

    def begin(self, position: Position) -> RefreshTicket:
        """Start a refresh for *position*, superseding earlier ones."""
        with self._lock:
            generation = self._generations.get(position.id, 0) + 1
            self._generations[position.id] = generation
        return RefreshTicket(position.id, position.coin_id, generation)

    def apply(self, ticket: RefreshTicket, price: float, now: float | None = None) -> float | None:
        """Write *price* into the book unless *ticket* has been superseded."""
        # Check and write under one lock so a newer ticket cannot land in between
        with self._lock:
            if self._generations.get(ticket.position_id) != ticket.generation:
                logger.debug("Dropping superseded price for %s", ticket.position_id)
                return None
            current = self._book.find(ticket.position_id)
            if current is None or current.coin_id != ticket.coin_id:
                logger.debug("Position %s changed source since refresh began", ticket.position_id)
                return None
            if price <= 0:
                return None

            self._book.update_position(
                ticket.position_id,
                current_price=price,
                last_updated=now if now is not None else time.time(),
            )
        self._book.bus.publish(
            PriceRefreshed(position_id=ticket.position_id, coin_id=ticket.coin_id, price=price)
        )
        return price


def choose_search_result(
    book: PositionBook,
    result: CoinSearchResult,
    refresher: PriceRefresher | None = None,
) -> Position:
    """Point the active position at *result* and refresh its price."""
    book.update_active(symbol=result.symbol, coin_id=result.id)
    if refresher is not None:
        refresher.refresh()
    return book.active
