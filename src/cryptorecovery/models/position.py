"""Tracked position data model.

A :class:`Position` is the authoritative state of one asset the user is
averaging down on: holdings and cost basis, the last observed market price,
the budget reserved for re-buys, and the re-buy strategy parameters.

Positions are *immutable*.  Every edit, price refresh or executed re-buy
produces a new value via :meth:`Position.with_updates`, so a projection
computed from one snapshot can never be disturbed by a later change.
"""

from __future__ import annotations

import math
import time
from dataclasses import asdict, dataclass, replace
from typing import Any

from cryptorecovery.core.constants import DEFAULT_POSITION_FIELDS, NEW_POSITION_SYMBOL
from cryptorecovery.models.types import CoinId, CoinSymbol, PositionId, StrategyType


@dataclass(frozen=True, slots=True)
class Position:
    """State of a single tracked asset.

    Parameters
    ----------
    id:
        Opaque stable identifier.
    symbol:
        Ticker shown to the user, e.g. ``"BTC"``.
    coin_id:
        Price-source identifier, e.g. ``"bitcoin"``.  Empty for a fresh
        position; such a position simply cannot be refreshed.
    avg_price:
        Average price paid per unit of current holdings.
    holdings:
        Quantity currently owned.
    current_price:
        Last known market price per unit.
    available_funds:
        Budget reserved for future re-buys.
    drop_step:
        Percentage drop between consecutive re-buy levels.
    multiplier:
        Growth factor of each martingale re-buy (ignored for ``fixed``).
    base_buy:
        Amount invested at the first re-buy level.
    strategy:
        :class:`StrategyType` of the re-buy ladder.
    last_updated:
        Unix epoch (seconds) of the last price refresh or execution.
    """

    id: PositionId
    symbol: CoinSymbol
    coin_id: CoinId = ""
    avg_price: float = 0.0
    holdings: float = 0.0
    current_price: float = 0.0
    available_funds: float = 0.0
    drop_step: float = 0.0
    multiplier: float = 1.0
    base_buy: float = 0.0
    strategy: StrategyType = StrategyType.MARTINGALE
    last_updated: float | None = None

    # -- construction ---------------------------------------------------------

    @classmethod
    def default(cls) -> Position:
        """The built-in BTC example position."""
        return cls.from_dict(DEFAULT_POSITION_FIELDS)

    @classmethod
    def new(cls, position_id: PositionId | None = None, now: float | None = None) -> Position:
        """A blank-symbol copy of the default template, ready for editing."""
        ts = now if now is not None else time.time()
        pid = position_id if position_id is not None else str(int(ts * 1000))
        return replace(
            cls.default(),
            id=pid,
            symbol=NEW_POSITION_SYMBOL,
            coin_id="",
            last_updated=ts,
        )

    def with_updates(self, **fields: Any) -> Position:
        """Return a copy with *fields* replaced (copy-on-write edit).

        Numeric fields and ``strategy`` go through the same lenient parsing
        as :meth:`from_dict`, so raw form input can be passed straight in.
        """
        unknown = set(fields) - set(_FIELD_NAMES)
        if unknown:
            raise TypeError(f"Unknown position field(s): {', '.join(sorted(unknown))}")
        parsed: dict[str, Any] = {}
        for key, value in fields.items():
            if key in _NUMERIC_FIELDS:
                parsed[key] = _parse_number(value, _NUMERIC_FIELDS[key])
            elif key == "strategy":
                parsed[key] = StrategyType.parse(value)
            elif key == "symbol":
                parsed[key] = str(value).strip().upper()
            elif key == "coin_id":
                parsed[key] = str(value or "").strip()
            else:
                parsed[key] = value
        return replace(self, **parsed)

    # -- derived properties ---------------------------------------------------

    @property
    def cost_basis(self) -> float:
        """Total amount paid for the current holdings (``0.0`` when empty)."""
        if self.holdings == 0.0:
            return 0.0
        return self.avg_price * self.holdings

    @property
    def can_refresh(self) -> bool:
        """``True`` when a price-source id is attached."""
        return bool(self.coin_id)

    def pnl_pct(self) -> float:
        """Unrealised PnL percentage of *current_price* against *avg_price*.

        Returns ``0.0`` if *avg_price* is zero.
        """
        if self.avg_price == 0.0:
            return 0.0
        return (self.current_price - self.avg_price) / self.avg_price * 100.0

    # -- serialisation --------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Plain-JSON representation used by the position store."""
        data = asdict(self)
        data["strategy"] = self.strategy.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Position:
        """Rebuild a Position from a stored record.

        Accepts snake_case keys as well as the camelCase keys of the browser
        version (``avgPrice``, ``coinId``, ``strategyType``, ``lastUpdated``
        in milliseconds).  Unparseable numbers become ``0`` (``1`` for
        *multiplier*), matching what the form inputs always did.
        """

        def _get(key: str, alt: str) -> Any:
            value = data.get(key)
            return data.get(alt) if value is None else value

        last_updated: float | None
        if data.get("last_updated") is not None:
            last_updated = _opt_float(data.get("last_updated"))
        elif data.get("lastUpdated") is not None:
            ms = _opt_float(data.get("lastUpdated"))
            last_updated = ms / 1000.0 if ms is not None else None
        else:
            last_updated = None

        return cls(
            id=str(data.get("id") or ""),
            symbol=str(data.get("symbol") or "").strip().upper(),
            coin_id=str(_get("coin_id", "coinId") or "").strip(),
            avg_price=_parse_number(_get("avg_price", "avgPrice"), 0.0),
            holdings=_parse_number(data.get("holdings"), 0.0),
            current_price=_parse_number(_get("current_price", "currentPrice"), 0.0),
            available_funds=_parse_number(_get("available_funds", "availableFunds"), 0.0),
            drop_step=_parse_number(_get("drop_step", "dropStep"), 0.0),
            multiplier=_parse_number(data.get("multiplier"), 1.0),
            base_buy=_parse_number(_get("base_buy", "baseBuy"), 0.0),
            strategy=StrategyType.parse(_get("strategy", "strategyType")),
            last_updated=last_updated,
        )

    # -- validation -----------------------------------------------------------

    def validate(self) -> list[str]:
        """Return a list of validation errors (empty means valid)."""
        errors: list[str] = []
        if not self.id:
            errors.append("id must not be empty.")
        if not self.symbol:
            errors.append("symbol must not be empty.")
        if self.holdings < 0:
            errors.append(f"holdings={self.holdings} must be >= 0.")
        if self.avg_price < 0:
            errors.append(f"avg_price={self.avg_price} must be >= 0.")
        if self.holdings > 0 and self.avg_price == 0:
            errors.append("avg_price must be set when holdings > 0.")
        if self.available_funds < 0:
            errors.append(f"available_funds={self.available_funds} must be >= 0.")
        if self.current_price <= 0:
            errors.append(f"current_price={self.current_price} must be > 0.")
        if self.drop_step <= 0:
            errors.append(f"drop_step={self.drop_step} must be > 0.")
        if self.drop_step >= 100:
            errors.append(f"drop_step={self.drop_step} must be < 100.")
        if self.base_buy <= 0:
            errors.append(f"base_buy={self.base_buy} must be > 0.")
        if self.strategy is StrategyType.MARTINGALE and self.multiplier < 1:
            errors.append(
                f"multiplier={self.multiplier} < 1 gives a shrinking martingale ladder."
            )
        return errors


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_FIELD_NAMES = (
    "id",
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
    "last_updated",
)

# field -> fallback used when the raw value is blank, zero or unparseable
_NUMERIC_FIELDS: dict[str, float] = {
    "avg_price": 0.0,
    "holdings": 0.0,
    "current_price": 0.0,
    "available_funds": 0.0,
    "drop_step": 0.0,
    "multiplier": 1.0,
    "base_buy": 0.0,
}


def _parse_number(value: Any, fallback: float) -> float:
    """``float(value)``, or *fallback* for blank, zero, non-finite or bad input."""
    if isinstance(value, bool):
        return fallback
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(number) or number == 0.0:
        return fallback
    return number


def _opt_float(val: Any) -> float | None:
    if val is None or isinstance(val, bool):
        return None
    try:
        number = float(val)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None
