"""Command-line front end for the re-buy planner.

Usage::

    cryptorecovery show
    cryptorecovery set current_price=52000 drop_step=4
    cryptorecovery execute 2 --cost 1400
    cryptorecovery search ethereum
    cryptorecovery use ethereum

Every invocation loads the position file, applies one command, and saves
the book after every change.  The active position is whichever comes first
in the file, so `select` and `add` move the chosen position to the front.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from cryptorecovery.core.config import AppConfig
from cryptorecovery.core.events import EventBus, Notice, NoticeLevel
from cryptorecovery.core.exceptions import InvalidOperationError, RecoveryError
from cryptorecovery.core.logging_setup import configure_logging
from cryptorecovery.core.price_client import CoinGeckoClient, PriceLookupClient
from cryptorecovery.core.storage import PositionStore
from cryptorecovery.hub.book import PositionBook
from cryptorecovery.hub.formatting import fmt_money, render_ladder, render_position
from cryptorecovery.hub.lookup import PriceRefresher, SearchSession, choose_search_result
from cryptorecovery.planner.projection_engine import deepest_affordable, total_planned_spend

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USER_ERROR = 1
EXIT_SERVICE_ERROR = 2

_EDITABLE_FIELDS = (
    "symbol",
    "coin_id",
    "avg_price",
    "holdings",
    "current_price",
    "available_funds",
    "drop_step",
    "multiplier",
    "base_buy",
    "strategy",
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cryptorecovery",
        description="Plan staged re-buys to lower a position's break-even price.",
    )
    parser.add_argument("--config", type=Path, default=None, help="settings JSON file")
    parser.add_argument("--data", type=Path, default=None, help="positions JSON file")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="list tracked positions")

    show = sub.add_parser("show", help="show a position and its re-buy ladder")
    show.add_argument("--id", dest="position_id", default=None)

    sub.add_parser("add", help="add a position from the default template")

    delete = sub.add_parser("delete", help="delete a position (never the last one)")
    delete.add_argument("position_id")

    select = sub.add_parser("select", help="make a position the active one")
    select.add_argument("position_id")

    set_cmd = sub.add_parser("set", help="edit fields of the active position")
    set_cmd.add_argument("assignments", nargs="+", metavar="FIELD=VALUE")

    execute = sub.add_parser("execute", help="record a projected level as bought")
    execute.add_argument("level", type=int)
    execute.add_argument("--cost", type=float, default=None, help="actual amount spent")

    sub.add_parser("refresh", help="fetch the active position's current price")

    search = sub.add_parser("search", help="search coins by name or symbol")
    search.add_argument("query")

    use = sub.add_parser("use", help="switch the active position to a coin id")
    use.add_argument("coin_id")

    return parser


def main(argv: Sequence[str] | None = None, client: PriceLookupClient | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = AppConfig.load(args.config)

    configure_logging(config, verbose=args.verbose)

    bus = EventBus()
    notices: list[Notice] = []
    bus.subscribe(Notice, notices.append)

    store = PositionStore(args.data if args.data is not None else config.positions_path)
    book = PositionBook.load(store, bus=bus)

    def _client() -> PriceLookupClient:
        return client if client is not None else CoinGeckoClient.from_config(config)

    try:
        code = _dispatch(args, book, config, _client)
    except InvalidOperationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        code = EXIT_USER_ERROR
    except RecoveryError as exc:
        logger.error("%s failed: %s", args.command, exc)
        print(f"error: {exc}", file=sys.stderr)
        code = EXIT_SERVICE_ERROR

    if code == EXIT_OK and any(n.level is NoticeLevel.ERROR for n in notices):
        code = EXIT_SERVICE_ERROR
    for notice in notices:
        stream = sys.stdout if notice.level is NoticeLevel.INFO else sys.stderr
        print(f"[{notice.level.value}] {notice.message}", file=stream)
    return code


def _dispatch(args: argparse.Namespace, book: PositionBook, config: AppConfig, get_client) -> int:
    command = args.command

    if command == "list":
        for pos in book.positions:
            marker = "*" if pos.id == book.active_id else " "
            print(f"{marker} {pos.id:<16} {pos.symbol:<8} {pos.coin_id or '-'}")
        return EXIT_OK

    if command == "show":
        pos = book.get(args.position_id) if args.position_id else book.active
        if pos.id != book.active_id:
            book.select(pos.id)
        _print_ladder(book)
        return EXIT_OK

    if command == "add":
        pos = book.add_position()
        _persist_selection(book)
        print(f"Added position {pos.id}")
        return EXIT_OK

    if command == "delete":
        if not book.delete_position(args.position_id):
            print("error: at least one position must remain", file=sys.stderr)
            return EXIT_USER_ERROR
        print(f"Deleted position {args.position_id}")
        return EXIT_OK

    if command == "select":
        book.select(args.position_id)
        _persist_selection(book)
        print(f"Active position: {book.active.symbol} [{book.active_id}]")
        return EXIT_OK

    if command == "set":
        fields = _parse_assignments(args.assignments)
        book.update_active(**fields)
        print(render_position(book.active))
        return EXIT_OK

    if command == "execute":
        book.execute_level(args.level, actual_cost=args.cost)
        _print_ladder(book)
        return EXIT_OK

    if command == "refresh":
        if not book.active.can_refresh:
            print("error: the active position has no coin id; use 'search' and 'use'", file=sys.stderr)
            return EXIT_USER_ERROR
        price = PriceRefresher(get_client(), book).refresh()
        if price is None:
            return EXIT_SERVICE_ERROR
        print(render_position(book.active))
        return EXIT_OK

    if command == "search":
        session = SearchSession(get_client(), book.bus, debounce_seconds=config.debounce_seconds)
        results = session.search_now(args.query)
        if not results:
            print("No matches.")
        for result in results:
            print(f"{result.id:<24} {result.label}")
        return EXIT_OK

    if command == "use":
        client = get_client()
        session = SearchSession(client, book.bus, debounce_seconds=config.debounce_seconds)
        matches = [r for r in session.search_now(args.coin_id) if r.id == args.coin_id]
        if not matches:
            print(f"error: no coin with id {args.coin_id!r}", file=sys.stderr)
            return EXIT_USER_ERROR
        pos = choose_search_result(book, matches[0], PriceRefresher(client, book))
        print(render_position(pos))
        return EXIT_OK

    raise InvalidOperationError(f"Unknown command {command!r}")  # pragma: no cover


# -- helpers ------------------------------------------------------------------


def _print_ladder(book: PositionBook) -> None:
    pos = book.active
    rows = book.projection()
    print(render_position(pos))
    print()
    print(render_ladder(rows, pos.symbol))
    if rows:
        deepest = deepest_affordable(rows)
        covered = f"level {deepest.level}" if deepest is not None else "no level"
        print()
        print(
            f"Full ladder needs {fmt_money(total_planned_spend(rows))}; "
            f"budget covers {covered}."
        )


def _parse_assignments(assignments: Sequence[str]) -> dict[str, str]:
    fields: dict[str, str] = {}
    for item in assignments:
        key, sep, value = item.partition("=")
        key = key.strip().replace("-", "_").lower()
        if not sep or not key:
            raise InvalidOperationError(f"Expected FIELD=VALUE, got {item!r}")
        if key not in _EDITABLE_FIELDS:
            raise InvalidOperationError(
                f"Unknown field {key!r}; choose from {', '.join(_EDITABLE_FIELDS)}"
            )
        fields[key] = value.strip()
    return fields


def _persist_selection(book: PositionBook) -> None:
    """Store the active position first so the next run starts on it."""
    book.move_to_front(book.active_id)


if __name__ == "__main__":
    raise SystemExit(main())
