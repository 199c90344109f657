"""Shared pytest fixtures for Crypto Recovery tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from cryptorecovery.core.events import EventBus
from cryptorecovery.core.exceptions import PriceServiceError
from cryptorecovery.core.price_client import PriceLookupClient
from cryptorecovery.core.storage import PositionStore
from cryptorecovery.models.position import Position
from cryptorecovery.models.search import CoinSearchResult
from cryptorecovery.models.types import StrategyType


class FakeLookupClient(PriceLookupClient):
    """Deterministic lookup service that records every call."""

    def __init__(
        self,
        prices: dict[str, float] | None = None,
        coins: list[CoinSearchResult] | None = None,
    ) -> None:
        self.prices = dict(prices or {})
        self.coins = list(coins or [])
        self.fail = False
        self.search_calls: list[str] = []
        self.price_calls: list[str] = []

    def search(self, query: str) -> list[CoinSearchResult]:
        self.search_calls.append(query)
        if self.fail:
            raise PriceServiceError("service down")
        q = query.lower()
        return [c for c in self.coins if q in c.id or q in c.symbol.lower() or q in c.name.lower()]

    def fetch_price(self, coin_id: str) -> float:
        self.price_calls.append(coin_id)
        if self.fail or coin_id not in self.prices:
            raise PriceServiceError(f"no price for {coin_id}")
        return self.prices[coin_id]


class ManualTimer:
    """``threading.Timer`` stand-in that only fires when told to."""

    created: list[ManualTimer] = []

    def __init__(self, interval: float, function: Any, args: tuple = ()) -> None:
        self.interval = interval
        self.function = function
        self.args = args
        self.daemon = False
        self.started = False
        self.cancelled = False
        ManualTimer.created.append(self)

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        self.function(*self.args)


@pytest.fixture
def btc_position() -> Position:
    """The reference martingale position (avg 65000, 0.5 BTC, price 58000)."""
    return Position(
        id="initial",
        symbol="BTC",
        coin_id="bitcoin",
        avg_price=65000.0,
        holdings=0.5,
        current_price=58000.0,
        available_funds=10000.0,
        drop_step=5.0,
        multiplier=1.5,
        base_buy=1000.0,
        strategy=StrategyType.MARTINGALE,
    )


@pytest.fixture
def coins() -> list[CoinSearchResult]:
    return [
        CoinSearchResult(id="bitcoin", name="Bitcoin", symbol="btc", thumbnail_url="https://x/btc.png"),
        CoinSearchResult(id="ethereum", name="Ethereum", symbol="eth", thumbnail_url="https://x/eth.png"),
        CoinSearchResult(id="solana", name="Solana", symbol="sol"),
    ]


@pytest.fixture
def fake_client(coins: list[CoinSearchResult]) -> FakeLookupClient:
    return FakeLookupClient(
        prices={"bitcoin": 61000.0, "ethereum": 3000.0, "solana": 150.0},
        coins=coins,
    )


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def positions_file(tmp_path: Path) -> Path:
    return tmp_path / "data" / "positions.json"


@pytest.fixture
def position_store(positions_file: Path) -> PositionStore:
    return PositionStore(positions_file)


@pytest.fixture
def manual_timer() -> type[ManualTimer]:
    ManualTimer.created = []
    return ManualTimer


@pytest.fixture
def write_positions(positions_file: Path):
    """Write raw records to the positions file."""

    def _write(records: Any) -> Path:
        positions_file.parent.mkdir(parents=True, exist_ok=True)
        positions_file.write_text(json.dumps(records), encoding="utf-8")
        return positions_file

    return _write
