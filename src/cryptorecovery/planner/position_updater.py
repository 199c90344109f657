"""Fold an executed re-buy back into a position.

A plain weighted-average-cost update: the fill adds ``actual_cost /
fill_price`` units at ``actual_cost``.  It knows nothing about ladder
levels; a projected row is only a convenient way to pre-fill the fill
price and cost.
"""

from __future__ import annotations

import logging
import time

from cryptorecovery.models.position import Position

logger = logging.getLogger(__name__)


def execute(
    position: Position,
    fill_price: float,
    actual_cost: float,
    now: float | None = None,
) -> Position:
    """Return the position after buying *actual_cost* worth at *fill_price*.

    *fill_price* must be positive; that is the caller's check.  The fill
    price becomes the new ``current_price`` and the remaining budget is
    clamped at zero.
    """
    new_coins = actual_cost / fill_price
    total_coins = position.holdings + new_coins
    total_cost = position.cost_basis + actual_cost
    new_avg_price = total_cost / total_coins

    updated = position.with_updates(
        holdings=total_coins,
        avg_price=new_avg_price,
        available_funds=max(0.0, position.available_funds - actual_cost),
        current_price=fill_price,
        last_updated=now if now is not None else time.time(),
    )
    logger.info(
        "Re-buy %s: %.8f @ %.8f for %.2f -> holdings=%.8f avg=%.8f",
        position.symbol,
        new_coins,
        fill_price,
        actual_cost,
        total_coins,
        new_avg_price,
    )
    return updated
