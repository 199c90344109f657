"""Text formatting for the planner front end.

Rounding happens only here; the planner itself works on raw floats.
"""

from __future__ import annotations

import math
import time
from collections.abc import Sequence
from typing import Any

from cryptorecovery.core.constants import HIGH_REBOUND_PCT
from cryptorecovery.models.position import Position
from cryptorecovery.models.projection import ProjectionRow
from cryptorecovery.models.types import StrategyType


def fmt_money(x: Any) -> str:
    """Format a USD amount as ``$1,234.56``."""
    try:
        v = float(x)
    except (TypeError, ValueError):
        return "N/A"
    if not math.isfinite(v):
        return "N/A"
    sign = "-" if v < 0 else ""
    return f"{sign}${abs(v):,.2f}"


def fmt_price(x: Any) -> str:
    """Format a USD price with decimals scaled to its magnitude."""
    try:
        v = float(x)
    except (TypeError, ValueError):
        return "N/A"
    if not math.isfinite(v):
        return "N/A"
    sign = "-" if v < 0 else ""
    av = abs(v)
    if av >= 1000:
        dec = 2
    elif av >= 1:
        dec = 4
    elif av >= 0.01:
        dec = 6
    else:
        dec = 8
    s = f"{av:,.{dec}f}"
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    return f"{sign}${s}"


def fmt_coins(x: Any) -> str:
    """Quantity with at least 2 and at most 6 decimals."""
    try:
        v = float(x)
    except (TypeError, ValueError):
        return "N/A"
    if not math.isfinite(v):
        return "N/A"
    s = f"{v:,.6f}"
    whole, frac = s.split(".")
    frac = frac.rstrip("0").ljust(2, "0")
    return f"{whole}.{frac}"


def fmt_pct(x: Any, signed: bool = True) -> str:
    try:
        v = float(x)
    except (TypeError, ValueError):
        return "N/A"
    return f"{v:+.2f}%" if signed else f"{v:.2f}%"


def fmt_timestamp(ts: float | None) -> str:
    """Local ``YYYY-mm-dd HH:MM:SS``, or ``N/A`` for missing or unrepresentable times."""
    if ts is None:
        return "N/A"
    try:
        return time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(ts))
    except (OverflowError, OSError, ValueError):
        return "N/A"


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------


def render_position(position: Position) -> str:
    """Multi-line summary of a position."""
    source = position.coin_id or "(no price source)"
    lines = [
        f"{position.symbol} [{position.id}]  source: {source}  synced: {fmt_timestamp(position.last_updated)}",
        f"  holdings      {fmt_coins(position.holdings)} {position.symbol}",
        f"  avg price     {fmt_price(position.avg_price)}",
        f"  current price {fmt_price(position.current_price)}  ({fmt_pct(position.pnl_pct())})",
        f"  budget        {fmt_money(position.available_funds)}",
        f"  strategy      {position.strategy.value}  step {position.drop_step:g}%"
        + (f"  x{position.multiplier:g}" if position.strategy is StrategyType.MARTINGALE else "")
        + f"  base {fmt_money(position.base_buy)}",
    ]
    return "\n".join(lines)


_HEADER = ("LVL", "TRIGGER", "DROP", "BUY", "TOTAL COINS", "NEW AVG", "REBOUND", "LEFT")


def render_ladder(rows: Sequence[ProjectionRow], symbol: str) -> str:
    """Plain-text ladder table; unaffordable levels are marked with ``x``."""
    if not rows:
        return "Enter a current price, drop step and base buy to project a ladder."

    table: list[tuple[str, ...]] = [_HEADER]
    for row in rows:
        marker = " " if row.is_affordable else "x"
        rebound = f"+{row.break_even_rebound:.1f}%"
        if row.break_even_rebound > HIGH_REBOUND_PCT:
            rebound += "!"
        table.append(
            (
                f"{marker}{row.level:>2}",
                fmt_price(row.trigger_price),
                f"-{row.drop_percent:.1f}%",
                fmt_money(row.investment),
                f"{fmt_coins(row.total_coins)} {symbol}",
                fmt_money(row.new_avg_price),
                rebound,
                fmt_money(row.remaining_funds),
            )
        )

    widths = [max(len(r[i]) for r in table) for i in range(len(_HEADER))]
    lines = ["  ".join(cell.rjust(widths[i]) for i, cell in enumerate(r)) for r in table]
    lines.insert(1, "-" * len(lines[0]))
    return "\n".join(lines)
