"""Symbol search result returned by the lookup service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class CoinSearchResult:
    """A coin matching a search query.

    ``id`` is what gets stored as a position's ``coin_id``; ``symbol`` is
    what the user sees.
    """

    id: str
    name: str
    symbol: str
    thumbnail_url: str = ""

    @property
    def label(self) -> str:
        """``"Bitcoin (BTC)"``."""
        return f"{self.name} ({self.symbol.upper()})"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CoinSearchResult | None:
        """Build from a CoinGecko ``/search`` coin entry.

        Returns ``None`` for entries without an ``id`` or ``symbol``.
        """
        coin_id = str(data.get("id") or "").strip()
        symbol = str(data.get("symbol") or "").strip()
        if not coin_id or not symbol:
            return None
        return cls(
            id=coin_id,
            name=str(data.get("name") or symbol),
            symbol=symbol,
            thumbnail_url=str(data.get("thumb") or data.get("thumbnail_url") or ""),
        )
