"""Domain-specific types for the Crypto Recovery planner.

The aliases document intent at call sites without runtime cost; the only
real type here is :class:`StrategyType`.
"""

from __future__ import annotations

from enum import Enum
from typing import TypeAlias

# Opaque, stable identifier of a tracked position.
PositionId: TypeAlias = str

# A ticker symbol as displayed, e.g. ``"BTC"``.
CoinSymbol: TypeAlias = str

# The price-source identifier, e.g. ``"bitcoin"`` on CoinGecko.  May be "".
CoinId: TypeAlias = str


class StrategyType(str, Enum):
    """How each successive re-buy is sized."""

    MARTINGALE = "martingale"  # base_buy * multiplier**i
    FIXED = "fixed"  # base_buy every level

    @classmethod
    def parse(cls, value: object, default: StrategyType | None = None) -> StrategyType:
        """Lenient conversion from stored strings; unknown values use *default*."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return default if default is not None else cls.MARTINGALE
