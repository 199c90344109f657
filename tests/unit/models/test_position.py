"""Tests for cryptorecovery.models.position."""

from __future__ import annotations

import dataclasses

import pytest

from cryptorecovery.models.position import Position
from cryptorecovery.models.types import StrategyType

# ---------------------------------------------------------------------------
# Construction & immutability
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_defaults(self) -> None:
        p = Position(id="x", symbol="ETH")
        assert p.coin_id == ""
        assert p.holdings == 0.0
        assert p.multiplier == 1.0
        assert p.strategy is StrategyType.MARTINGALE
        assert p.last_updated is None

    def test_frozen(self, btc_position: Position) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            btc_position.holdings = 1.0  # type: ignore[misc]

    def test_default_template(self) -> None:
        p = Position.default()
        assert p.id == "initial"
        assert p.symbol == "BTC"
        assert p.coin_id == "bitcoin"
        assert p.avg_price == 65000.0
        assert p.holdings == 0.5
        assert p.current_price == 58000.0
        assert p.available_funds == 10000.0
        assert p.drop_step == 5.0
        assert p.multiplier == 1.5
        assert p.base_buy == 1000.0
        assert p.strategy is StrategyType.MARTINGALE

    def test_new_position(self) -> None:
        p = Position.new(now=1_700_000_000.0)
        assert p.id == "1700000000000"
        assert p.symbol == "NEW"
        assert p.coin_id == ""
        assert p.last_updated == 1_700_000_000.0
        assert p.avg_price == 65000.0  # rest copied from the template


class TestWithUpdates:
    def test_returns_new_value(self, btc_position: Position) -> None:
        updated = btc_position.with_updates(holdings=1.0)
        assert updated.holdings == 1.0
        assert btc_position.holdings == 0.5
        assert updated is not btc_position

    def test_parses_raw_strings(self, btc_position: Position) -> None:
        updated = btc_position.with_updates(current_price="52000.5", strategy="FIXED")
        assert updated.current_price == 52000.5
        assert updated.strategy is StrategyType.FIXED

    def test_blank_number_becomes_zero(self, btc_position: Position) -> None:
        assert btc_position.with_updates(current_price="").current_price == 0.0
        assert btc_position.with_updates(base_buy="abc").base_buy == 0.0

    def test_blank_multiplier_becomes_one(self, btc_position: Position) -> None:
        assert btc_position.with_updates(multiplier="").multiplier == 1.0
        assert btc_position.with_updates(multiplier="0").multiplier == 1.0

    def test_symbol_upper_cased(self, btc_position: Position) -> None:
        assert btc_position.with_updates(symbol=" eth ").symbol == "ETH"

    def test_unknown_field(self, btc_position: Position) -> None:
        with pytest.raises(TypeError, match="Unknown position field"):
            btc_position.with_updates(price=1.0)


# ---------------------------------------------------------------------------
# Derived properties
# ---------------------------------------------------------------------------


class TestDerived:
    def test_cost_basis(self, btc_position: Position) -> None:
        assert btc_position.cost_basis == pytest.approx(32500.0)

    def test_cost_basis_zero_holdings(self) -> None:
        p = Position(id="x", symbol="BTC", avg_price=50000.0, holdings=0.0)
        assert p.cost_basis == 0.0

    def test_pnl_pct(self, btc_position: Position) -> None:
        assert btc_position.pnl_pct() == pytest.approx((58000 - 65000) / 65000 * 100)

    def test_pnl_pct_zero_avg(self) -> None:
        assert Position(id="x", symbol="BTC", current_price=10.0).pnl_pct() == 0.0

    def test_can_refresh(self, btc_position: Position) -> None:
        assert btc_position.can_refresh is True
        assert dataclasses.replace(btc_position, coin_id="").can_refresh is False


# ---------------------------------------------------------------------------
# Serialisation
# ---------------------------------------------------------------------------


class TestSerialisation:
    def test_round_trip(self, btc_position: Position) -> None:
        assert Position.from_dict(btc_position.to_dict()) == btc_position

    def test_to_dict_strategy_is_string(self, btc_position: Position) -> None:
        assert btc_position.to_dict()["strategy"] == "martingale"

    def test_from_browser_record(self) -> None:
        data = {
            "id": "1700000000000",
            "symbol": "eth",
            "coinId": "ethereum",
            "avgPrice": "3200",
            "holdings": "2",
            "currentPrice": 2800,
            "availableFunds": "5000",
            "dropStep": "4",
            "multiplier": "2",
            "baseBuy": "500",
            "strategyType": "fixed",
            "lastUpdated": 1700000000000,
        }
        p = Position.from_dict(data)
        assert p.symbol == "ETH"
        assert p.coin_id == "ethereum"
        assert p.avg_price == 3200.0
        assert p.holdings == 2.0
        assert p.current_price == 2800.0
        assert p.available_funds == 5000.0
        assert p.drop_step == 4.0
        assert p.multiplier == 2.0
        assert p.base_buy == 500.0
        assert p.strategy is StrategyType.FIXED
        assert p.last_updated == pytest.approx(1_700_000_000.0)

    def test_from_dict_lenient(self) -> None:
        p = Position.from_dict({"id": "a", "symbol": "x", "holdings": "n/a", "strategy": "weird"})
        assert p.holdings == 0.0
        assert p.multiplier == 1.0
        assert p.strategy is StrategyType.MARTINGALE
        assert p.coin_id == ""

    def test_from_dict_rejects_non_finite(self) -> None:
        p = Position.from_dict({"id": "a", "symbol": "x", "avg_price": "nan", "holdings": "inf"})
        assert p.avg_price == 0.0
        assert p.holdings == 0.0

    @pytest.mark.parametrize("raw", ["nan", "inf", float("-inf"), True, "soon"])
    def test_from_dict_drops_unusable_timestamp(self, raw: object) -> None:
        assert Position.from_dict({"id": "a", "symbol": "x", "last_updated": raw}).last_updated is None
        assert Position.from_dict({"id": "a", "symbol": "x", "lastUpdated": raw}).last_updated is None


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidation:
    def test_valid(self, btc_position: Position) -> None:
        assert btc_position.validate() == []

    def test_negative_holdings(self, btc_position: Position) -> None:
        errors = dataclasses.replace(btc_position, holdings=-1.0).validate()
        assert any("holdings" in e for e in errors)

    def test_missing_avg_with_holdings(self, btc_position: Position) -> None:
        errors = dataclasses.replace(btc_position, avg_price=0.0).validate()
        assert any("avg_price must be set" in e for e in errors)

    def test_unconfigured_ladder(self) -> None:
        errors = Position(id="x", symbol="NEW").validate()
        assert any("current_price" in e for e in errors)
        assert any("drop_step" in e for e in errors)
        assert any("base_buy" in e for e in errors)

    def test_shrinking_martingale_is_flagged_not_rejected(self, btc_position: Position) -> None:
        pos = dataclasses.replace(btc_position, multiplier=0.8)
        errors = pos.validate()
        assert any("multiplier" in e for e in errors)

    def test_small_multiplier_fine_for_fixed(self, btc_position: Position) -> None:
        pos = dataclasses.replace(btc_position, multiplier=0.8, strategy=StrategyType.FIXED)
        assert pos.validate() == []
