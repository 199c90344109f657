"""One candidate re-buy level of a projected ladder.

Rows are ephemeral: they are recomputed from the current position every
time they are needed and are never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ProjectionRow:
    """A single projected re-buy level.

    Parameters
    ----------
    level:
        1-based index in the ladder.
    trigger_price:
        Price at which this re-buy would happen.
    investment:
        Planned amount spent at this level.
    coins_bought:
        Units that *investment* buys at *trigger_price*.
    total_coins:
        Holdings after this and all earlier levels execute.
    total_cost:
        Cost basis after this and all earlier levels execute.
    new_avg_price:
        ``total_cost / total_coins``.
    break_even_rebound:
        Percent rise from *trigger_price* needed to reach *new_avg_price*.
    drop_percent:
        Percent below the position's current price (anchored, not per level).
    remaining_funds:
        Budget left after this and all earlier planned spends; negative
        when the ladder has outrun the budget.
    is_affordable:
        ``remaining_funds >= 0``.
    """

    level: int
    trigger_price: float
    investment: float
    coins_bought: float
    total_coins: float
    total_cost: float
    new_avg_price: float
    break_even_rebound: float
    drop_percent: float
    remaining_funds: float
    is_affordable: bool

    def to_dict(self) -> dict[str, object]:
        return {
            "level": self.level,
            "trigger_price": self.trigger_price,
            "investment": self.investment,
            "coins_bought": self.coins_bought,
            "total_coins": self.total_coins,
            "total_cost": self.total_cost,
            "new_avg_price": self.new_avg_price,
            "break_even_rebound": self.break_even_rebound,
            "drop_percent": self.drop_percent,
            "remaining_funds": self.remaining_funds,
            "is_affordable": self.is_affordable,
        }
