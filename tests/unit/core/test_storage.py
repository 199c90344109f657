"""Tests for cryptorecovery.core.storage."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from cryptorecovery.core.storage import FileStore, PositionStore
from cryptorecovery.models.position import Position


class TestReadJson:
    def test_read_valid_json(self, tmp_path: Path) -> None:
        p = tmp_path / "data.json"
        p.write_text('{"key": "value"}', encoding="utf-8")
        assert FileStore.read_json(p) == {"key": "value"}

    def test_read_missing_file(self, tmp_path: Path) -> None:
        p = tmp_path / "missing.json"
        assert FileStore.read_json(p) is None
        assert FileStore.read_json(p, []) == []

    def test_read_corrupt_json(self, tmp_path: Path) -> None:
        p = tmp_path / "bad.json"
        p.write_text("{{{", encoding="utf-8")
        assert FileStore.read_json(p, "fallback") == "fallback"

    def test_read_non_utf8(self, tmp_path: Path) -> None:
        p = tmp_path / "latin.json"
        p.write_bytes(b'{"name": "caf\xe9"}')
        assert FileStore.read_json(p, "fallback") == "fallback"

    def test_read_json_null(self, tmp_path: Path) -> None:
        p = tmp_path / "null.json"
        p.write_text("null", encoding="utf-8")
        assert FileStore.read_json(p, {"default": True}) == {"default": True}


class TestWriteJson:
    def test_write_and_read(self, tmp_path: Path) -> None:
        p = tmp_path / "out.json"
        assert FileStore.write_json(p, [{"id": "a"}]) is True
        assert json.loads(p.read_text(encoding="utf-8")) == [{"id": "a"}]

    def test_no_leftover_tmp(self, tmp_path: Path) -> None:
        p = tmp_path / "out.json"
        FileStore.write_json(p, [])
        assert not p.with_suffix(".json.tmp").exists()

    def test_creates_parent_dirs(self, tmp_path: Path) -> None:
        p = tmp_path / "sub" / "data.json"
        FileStore.write_json(p, [1, 2, 3])
        assert json.loads(p.read_text(encoding="utf-8")) == [1, 2, 3]

    def test_unwritable_returns_false(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")
        # parent "directory" is a regular file
        assert FileStore.write_json(blocker / "out.json", {}) is False


class TestPositionStoreLoad:
    def test_missing_file_gives_default(self, position_store: PositionStore) -> None:
        assert position_store.load_all() == [Position.default()]

    @pytest.mark.parametrize(
        "raw",
        [b"", b"{{{", b"null", b"{}", b"42", b"[]", b'[{"id": "a\xff\xfe"}]', b"\xff\xfe[]"],
    )
    def test_unusable_file_gives_default(self, positions_file: Path, raw: bytes) -> None:
        positions_file.parent.mkdir(parents=True, exist_ok=True)
        positions_file.write_bytes(raw)
        assert PositionStore(positions_file).load_all() == [Position.default()]

    def test_skips_bad_records(self, write_positions, position_store: PositionStore) -> None:
        write_positions(
            [
                {"id": "a", "symbol": "btc", "holdings": 1},
                "garbage",
                {"symbol": "no-id"},
                {"id": "a", "symbol": "dup"},
                {"id": "b", "symbol": "eth"},
            ]
        )
        loaded = position_store.load_all()
        assert [p.id for p in loaded] == ["a", "b"]
        assert loaded[0].symbol == "BTC"

    def test_reads_browser_records(self, write_positions, position_store: PositionStore) -> None:
        write_positions([{"id": "initial", "symbol": "BTC", "coinId": "bitcoin", "avgPrice": 65000}])
        (pos,) = position_store.load_all()
        assert pos.coin_id == "bitcoin"
        assert pos.avg_price == 65000.0


class TestPositionStoreSave:
    def test_round_trip(self, position_store: PositionStore, btc_position: Position) -> None:
        other = btc_position.with_updates(id="2", symbol="ETH", coin_id="")
        assert position_store.save_all([btc_position, other]) is True
        assert position_store.load_all() == [btc_position, other]

    def test_file_is_json_array(self, position_store: PositionStore, btc_position: Position) -> None:
        position_store.save_all([btc_position])
        data = json.loads(position_store.path.read_text(encoding="utf-8"))
        assert isinstance(data, list)
        assert data[0]["strategy"] == "martingale"
        assert data[0]["coin_id"] == "bitcoin"
