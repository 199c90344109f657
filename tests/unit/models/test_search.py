"""Tests for cryptorecovery.models.search."""

from __future__ import annotations

import pytest

from cryptorecovery.models.search import CoinSearchResult


class TestFromDict:
    def test_coingecko_entry(self) -> None:
        r = CoinSearchResult.from_dict(
            {
                "id": "bitcoin",
                "name": "Bitcoin",
                "symbol": "BTC",
                "market_cap_rank": 1,
                "thumb": "https://assets.coingecko.com/coins/images/1/thumb/bitcoin.png",
            }
        )
        assert r is not None
        assert r.id == "bitcoin"
        assert r.symbol == "BTC"
        assert r.thumbnail_url.endswith("bitcoin.png")

    @pytest.mark.parametrize("data", [{}, {"id": "x"}, {"symbol": "X"}, {"id": "", "symbol": "X"}])
    def test_incomplete_entries(self, data: dict) -> None:
        assert CoinSearchResult.from_dict(data) is None

    def test_name_defaults_to_symbol(self) -> None:
        r = CoinSearchResult.from_dict({"id": "foo", "symbol": "foo"})
        assert r is not None
        assert r.name == "foo"
        assert r.thumbnail_url == ""


def test_label() -> None:
    assert CoinSearchResult(id="ethereum", name="Ethereum", symbol="eth").label == "Ethereum (ETH)"
