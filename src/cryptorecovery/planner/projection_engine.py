"""Re-buy ladder projection: the DCA / martingale planner.

Given a position snapshot, :func:`project` lays out the next
:data:`~cryptorecovery.core.constants.LADDER_DEPTH` re-buy levels below the
current price.  Each level compounds its trigger from the previous one,
sizes its buy from the strategy, and folds the buy into running totals so
every row shows where the average price would sit if it and all earlier
levels were executed.

The ladder is always computed to full depth.  Levels the budget cannot
cover are flagged with ``is_affordable=False`` but still emitted, so the
caller always sees the whole strategy.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from cryptorecovery.core.constants import LADDER_DEPTH
from cryptorecovery.models.position import Position
from cryptorecovery.models.projection import ProjectionRow
from cryptorecovery.models.types import StrategyType

logger = logging.getLogger(__name__)


def project(position: Position, depth: int = LADDER_DEPTH) -> list[ProjectionRow]:
    """Project the re-buy ladder for *position*.

    Returns ``[]`` when the current price, drop step or base buy is not
    positive (not configured yet); otherwise exactly *depth* rows.
    """
    current_price = position.current_price
    drop_step = position.drop_step
    base_buy = position.base_buy

    if current_price <= 0 or drop_step <= 0 or base_buy <= 0:
        logger.debug(
            "No ladder for %s: current_price=%s drop_step=%s base_buy=%s",
            position.symbol,
            current_price,
            drop_step,
            base_buy,
        )
        return []

    step_factor = 1 - drop_step / 100
    running_coins = position.holdings
    running_cost = position.cost_basis
    running_funds = position.available_funds
    trigger_price = current_price

    rows: list[ProjectionRow] = []
    for i in range(depth):
        trigger_price = trigger_price * step_factor
        investment = _investment(position, i)

        coins_bought = investment / trigger_price
        running_coins = running_coins + coins_bought
        running_cost = running_cost + investment
        new_avg_price = running_cost / running_coins
        break_even_rebound = (new_avg_price - trigger_price) / trigger_price * 100
        # Anchored at the original price while triggers compound level to level
        drop_percent = (current_price - trigger_price) / current_price * 100
        running_funds = running_funds - investment

        rows.append(
            ProjectionRow(
                level=i + 1,
                trigger_price=trigger_price,
                investment=investment,
                coins_bought=coins_bought,
                total_coins=running_coins,
                total_cost=running_cost,
                new_avg_price=new_avg_price,
                break_even_rebound=break_even_rebound,
                drop_percent=drop_percent,
                remaining_funds=running_funds,
                is_affordable=running_funds >= 0,
            )
        )

    return rows


def total_planned_spend(rows: Sequence[ProjectionRow]) -> float:
    """Sum of every level's planned investment."""
    return sum(row.investment for row in rows)


def deepest_affordable(rows: Sequence[ProjectionRow]) -> ProjectionRow | None:
    """Last level the budget still covers, or ``None`` if not even the first."""
    last: ProjectionRow | None = None
    for row in rows:
        if not row.is_affordable:
            break
        last = row
    return last


def find_level(rows: Sequence[ProjectionRow], level: int) -> ProjectionRow | None:
    """Row with the given 1-based *level*, or ``None``."""
    if 1 <= level <= len(rows):
        return rows[level - 1]
    return None


# -- private helpers ------------------------------------------------------


def _investment(position: Position, index: int) -> float:
    """Planned spend at 0-based ladder *index*."""
    if position.strategy is StrategyType.MARTINGALE:
        return position.base_buy * position.multiplier**index
    return position.base_buy
