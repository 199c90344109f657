"""The position book: every tracked position plus the active selection.

The book owns the application state.  Positions inside it are immutable;
each mutation swaps in new :class:`Position` values, bumps :attr:`version`,
saves through the store and publishes :class:`PositionsChanged`.  The
projection is never cached: :meth:`PositionBook.projection` recomputes the
full ladder from the current active position on every call.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from typing import Any

from cryptorecovery.core.events import (
    EventBus,
    Notice,
    NoticeLevel,
    PositionsChanged,
    RebuyExecuted,
)
from cryptorecovery.core.exceptions import InvalidOperationError
from cryptorecovery.core.storage import PositionStore
from cryptorecovery.models.position import Position
from cryptorecovery.models.projection import ProjectionRow
from cryptorecovery.planner import position_updater, projection_engine

logger = logging.getLogger(__name__)


class PositionBook:
    """Versioned, copy-on-write collection of positions.

    Parameters
    ----------
    positions:
        Initial positions; an empty iterable starts from the default one.
    store:
        Where committed changes are saved.  ``None`` keeps the book
        in memory only.
    bus:
        Event bus for change notifications and user notices.
    """

    def __init__(
        self,
        positions: Iterable[Position] = (),
        store: PositionStore | None = None,
        bus: EventBus | None = None,
    ) -> None:
        self._positions: tuple[Position, ...] = tuple(positions) or (Position.default(),)
        self._active_id = self._positions[0].id
        self._store = store
        self._bus = bus or EventBus()
        self._version = 0

    @classmethod
    def load(cls, store: PositionStore, bus: EventBus | None = None) -> PositionBook:
        """Open the book from *store* (falls back to the default position)."""
        return cls(store.load_all(), store=store, bus=bus)

    # -- read access ----------------------------------------------------------

    @property
    def positions(self) -> tuple[Position, ...]:
        return self._positions

    @property
    def version(self) -> int:
        """Incremented on every committed change."""
        return self._version

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def active_id(self) -> str:
        return self._active_id

    @property
    def active(self) -> Position:
        """The selected position, or the first one if the id went stale."""
        return self.find(self._active_id) or self._positions[0]

    def find(self, position_id: str) -> Position | None:
        for pos in self._positions:
            if pos.id == position_id:
                return pos
        return None

    def get(self, position_id: str) -> Position:
        """Like :meth:`find` but raises for unknown ids."""
        pos = self.find(position_id)
        if pos is None:
            raise InvalidOperationError(f"No position with id {position_id!r}")
        return pos

    def projection(self) -> list[ProjectionRow]:
        """Full re-buy ladder for the active position, freshly computed."""
        return projection_engine.project(self.active)

    # -- selection / membership -----------------------------------------------

    def select(self, position_id: str) -> Position:
        pos = self.get(position_id)
        if pos.id != self._active_id:
            self._active_id = pos.id
            self._commit(self._positions, save=False)
        return pos

    def add_position(self, now: float | None = None) -> Position:
        """Append a fresh position based on the default template and select it."""
        ts = now if now is not None else time.time()
        new_id = str(int(ts * 1000))
        while self.find(new_id) is not None:
            new_id = str(int(new_id) + 1)
        pos = Position.new(new_id, now=ts)
        self._active_id = pos.id
        self._commit(self._positions + (pos,))
        logger.info("Added position %s", pos.id)
        return pos

    def delete_position(self, position_id: str) -> bool:
        """Remove a position.  The last remaining position is never deleted.

        Returns ``False`` if the deletion was refused.
        """
        self.get(position_id)
        if len(self._positions) <= 1:
            logger.info("Refusing to delete %s: the book keeps at least one position", position_id)
            return False
        remaining = tuple(p for p in self._positions if p.id != position_id)
        if self._active_id == position_id:
            self._active_id = remaining[0].id
        self._commit(remaining)
        logger.info("Deleted position %s", position_id)
        return True

    def move_to_front(self, position_id: str) -> None:
        """Reorder so *position_id* comes first (the default selection on load)."""
        pos = self.get(position_id)
        if self._positions[0].id == pos.id:
            return
        self._commit((pos,) + tuple(p for p in self._positions if p.id != pos.id))

    # -- edits ------------------------------------------------------------------

    def update_active(self, **fields: Any) -> Position:
        return self.update_position(self.active.id, **fields)

    def update_position(self, position_id: str, **fields: Any) -> Position:
        """Replace *fields* on one position (raw form values are accepted).

        Negative holdings, average price or funds are refused.  Any other
        problem :meth:`Position.validate` finds is committed anyway and
        published as a warning :class:`Notice`.
        """
        if "id" in fields:
            raise InvalidOperationError("A position's id cannot be changed")
        current = self.get(position_id)
        updated = current.with_updates(**fields)
        negative = [
            name for name in ("holdings", "avg_price", "available_funds") if getattr(updated, name) < 0
        ]
        if negative:
            raise InvalidOperationError(f"{', '.join(negative)} cannot be negative")
        self._replace(updated)
        problems = updated.validate()
        if problems:
            self._bus.publish(
                Notice(message=f"{updated.symbol}: {' '.join(problems)}", level=NoticeLevel.WARNING)
            )
        return updated

    # -- execution ----------------------------------------------------------------

    def execute(
        self,
        fill_price: float,
        actual_cost: float,
        level: int | None = None,
        now: float | None = None,
    ) -> Position:
        """Record a re-buy of *actual_cost* at *fill_price* on the active position."""
        if fill_price <= 0:
            raise InvalidOperationError(f"fill_price={fill_price} must be > 0")
        if actual_cost <= 0:
            raise InvalidOperationError(f"actual_cost={actual_cost} must be > 0")
        before = self.active
        after = position_updater.execute(before, fill_price, actual_cost, now=now)
        self._replace(after)
        self._bus.publish(
            RebuyExecuted(
                before=before, after=after, fill_price=fill_price, cost=actual_cost, level=level
            )
        )
        self._bus.publish(
            Notice(message=f"Re-buy recorded. {after.symbol} position updated.", level=NoticeLevel.INFO)
        )
        return after

    def execute_level(
        self,
        level: int,
        actual_cost: float | None = None,
        now: float | None = None,
    ) -> Position:
        """Execute the projected row *level* (1-based) of the active position.

        A missing or non-positive *actual_cost* uses the row's planned
        investment.  Unknown and unaffordable levels are refused.
        """
        row = projection_engine.find_level(self.projection(), level)
        if row is None:
            raise InvalidOperationError(f"No projected level {level} for {self.active.symbol}")
        if not row.is_affordable:
            raise InvalidOperationError(
                f"Level {level} is not affordable (short by {-row.remaining_funds:.2f})"
            )
        cost = actual_cost if actual_cost is not None and actual_cost > 0 else row.investment
        return self.execute(row.trigger_price, cost, level=level, now=now)

    # -- internals ----------------------------------------------------------------

    def _replace(self, updated: Position) -> None:
        self._commit(tuple(updated if p.id == updated.id else p for p in self._positions))

    def _commit(self, positions: tuple[Position, ...], save: bool = True) -> None:
        self._positions = positions
        self._version += 1
        if save and self._store is not None and not self._store.save_all(positions):
            self._bus.publish(
                Notice(message="Could not save positions to disk.", level=NoticeLevel.ERROR)
            )
        self._bus.publish(PositionsChanged(version=self._version, active_id=self._active_id))
