"""Atomic JSON file I/O and the position store built on it.

The store is read once on start and rewritten in full after every
committed change.  Corrupt or missing data never propagates: the planner
falls back to the single default position.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from cryptorecovery.core.exceptions import DataCorruptionError
from cryptorecovery.models.position import Position

logger = logging.getLogger(__name__)


class FileStore:
    """Centralised file I/O that logs every failure."""

    @staticmethod
    def read_json(path: Path, default: Any = None) -> Any:
        """Read a JSON file, returning *default* if missing or corrupt."""
        try:
            raw = path.read_text(encoding="utf-8")
            data = json.loads(raw)
            return data if data is not None else default
        except (OSError, ValueError, TypeError) as exc:
            logger.debug("read_json(%s) failed: %s", path, exc)
            return default

    @staticmethod
    def write_json(path: Path, data: Any) -> bool:
        """Atomic JSON write via a ``.tmp`` sibling + :func:`os.replace`.

        Returns ``False`` (after logging) if the file could not be written.
        """
        tmp = path.with_suffix(path.suffix + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
            os.replace(tmp, path)
            return True
        except OSError as exc:
            logger.error("write_json(%s) failed: %s", path, exc)
            with contextlib.suppress(OSError):
                tmp.unlink(missing_ok=True)
            return False


class PositionStore:
    """Persist the list of tracked positions as a JSON array.

    Parameters
    ----------
    path:
        Location of ``positions.json``.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load_all(self) -> list[Position]:
        """Load every stored position.

        An empty, missing or unusable file yields ``[Position.default()]``.
        """
        if not self._path.exists():
            logger.info("No position file at %s; starting from the default position", self._path)
            return [Position.default()]

        raw = FileStore.read_json(self._path)
        try:
            positions = self._parse(raw)
        except DataCorruptionError as exc:
            logger.warning("Discarding stored positions in %s: %s", self._path, exc)
            return [Position.default()]

        if not positions:
            return [Position.default()]
        logger.debug("Loaded %d position(s) from %s", len(positions), self._path)
        return positions

    def save_all(self, positions: Iterable[Position]) -> bool:
        """Rewrite the whole file with *positions*."""
        records = [p.to_dict() for p in positions]
        ok = FileStore.write_json(self._path, records)
        if ok:
            logger.debug("Saved %d position(s) to %s", len(records), self._path)
        return ok

    # -- parsing ----------------------------------------------------------

    @staticmethod
    def _parse(raw: Any) -> list[Position]:
        if raw is None:
            raise DataCorruptionError("file is empty or not valid JSON")
        if not isinstance(raw, list):
            raise DataCorruptionError(f"expected a JSON array, got {type(raw).__name__}")

        positions: list[Position] = []
        seen: set[str] = set()
        for item in raw:
            if not isinstance(item, dict):
                logger.debug("Skipping non-object position record %r", item)
                continue
            pos = Position.from_dict(item)
            if not pos.id or pos.id in seen:
                logger.debug("Skipping position record with missing/duplicate id %r", pos.id)
                continue
            seen.add(pos.id)
            positions.append(pos)
        return positions
