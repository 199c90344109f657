"""Validated application configuration loaded from ``recovery_settings.json``."""

from __future__ import annotations

import json
import logging
import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from cryptorecovery.core.constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_CALLS_PER_SECOND,
    DEFAULT_DATA_DIR,
    DEFAULT_LOG_DIR,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SEARCH_DEBOUNCE_SECONDS,
    DEFAULT_SEARCH_LIMIT,
    DEFAULT_VS_CURRENCY,
    POSITIONS_FILENAME,
    SETTINGS_ENV_VAR,
    SETTINGS_FILENAME,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppConfig:
    """Immutable snapshot of the planner configuration.

    Build from a settings file via :meth:`from_file`, or construct directly
    for testing.
    """

    data_dir: str = DEFAULT_DATA_DIR
    positions_filename: str = POSITIONS_FILENAME
    api_base_url: str = DEFAULT_API_BASE_URL
    vs_currency: str = DEFAULT_VS_CURRENCY
    search_limit: int = DEFAULT_SEARCH_LIMIT
    debounce_seconds: float = DEFAULT_SEARCH_DEBOUNCE_SECONDS
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    calls_per_second: float = DEFAULT_CALLS_PER_SECOND
    max_retries: int = DEFAULT_MAX_RETRIES
    log_dir: str = DEFAULT_LOG_DIR
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def positions_path(self) -> Path:
        """Full path of the JSON position list."""
        return Path(self.data_dir) / self.positions_filename

    # -- factory ----------------------------------------------------------

    @classmethod
    def from_file(cls, path: Path) -> AppConfig:
        """Load from a settings file with validation.

        Missing, unparseable or non-positive values fall back to defaults.
        Validation warnings are logged but never raise.
        """
        try:
            raw = path.read_text(encoding="utf-8")
            data: dict[str, Any] = json.loads(raw) or {}
            if not isinstance(data, dict):
                data = {}
        except (OSError, ValueError, TypeError) as exc:
            logger.warning("Could not read config from %s: %s", path, exc)
            data = {}

        cfg = cls(
            data_dir=_safe_str(data.get("data_dir"), DEFAULT_DATA_DIR),
            positions_filename=_safe_str(data.get("positions_filename"), POSITIONS_FILENAME),
            api_base_url=_safe_str(data.get("api_base_url"), DEFAULT_API_BASE_URL).rstrip("/"),
            vs_currency=_safe_str(data.get("vs_currency"), DEFAULT_VS_CURRENCY).lower(),
            search_limit=int(
                _positive(
                    "search_limit",
                    _safe_int(data.get("search_limit"), DEFAULT_SEARCH_LIMIT),
                    DEFAULT_SEARCH_LIMIT,
                )
            ),
            debounce_seconds=max(
                0.0, _safe_float(data.get("debounce_seconds"), DEFAULT_SEARCH_DEBOUNCE_SECONDS)
            ),
            request_timeout=_positive(
                "request_timeout",
                _safe_float(data.get("request_timeout"), DEFAULT_REQUEST_TIMEOUT),
                DEFAULT_REQUEST_TIMEOUT,
            ),
            calls_per_second=_positive(
                "calls_per_second",
                _safe_float(data.get("calls_per_second"), DEFAULT_CALLS_PER_SECOND),
                DEFAULT_CALLS_PER_SECOND,
            ),
            max_retries=max(0, _safe_int(data.get("max_retries"), DEFAULT_MAX_RETRIES)),
            log_dir=_safe_str(data.get("log_dir"), DEFAULT_LOG_DIR),
            log_level=_safe_str(data.get("log_level"), DEFAULT_LOG_LEVEL).upper(),
        )

        for err in cfg.validate():
            logger.warning("Config validation: %s", err)

        return cfg

    @classmethod
    def load(cls, path: Path | None = None) -> AppConfig:
        """Resolve the settings path and load it.

        Order: explicit *path*, then ``$CRYPTORECOVERY_SETTINGS``, then
        ``./recovery_settings.json``.  A missing default file silently
        yields the built-in defaults.
        """
        if path is None:
            env = os.environ.get(SETTINGS_ENV_VAR, "").strip()
            if env:
                path = Path(env)
            else:
                path = Path(SETTINGS_FILENAME)
                if not path.is_file():
                    return cls()
        return cls.from_file(path)

    # -- validation -------------------------------------------------------

    def validate(self) -> list[str]:
        """Return a list of human-readable validation warnings (empty = OK)."""
        errors: list[str] = []
        if not self.data_dir:
            errors.append("data_dir must not be empty.")
        if not self.positions_filename:
            errors.append("positions_filename must not be empty.")
        if not self.api_base_url.startswith(("http://", "https://")):
            errors.append(f"api_base_url={self.api_base_url!r} is not an http(s) URL.")
        if self.search_limit <= 0:
            errors.append(f"search_limit={self.search_limit} must be > 0.")
        if self.debounce_seconds < 0:
            errors.append(f"debounce_seconds={self.debounce_seconds} must be >= 0.")
        if self.request_timeout <= 0:
            errors.append(f"request_timeout={self.request_timeout} must be > 0.")
        if self.calls_per_second <= 0:
            errors.append(f"calls_per_second={self.calls_per_second} must be > 0.")
        if self.max_retries < 0:
            errors.append(f"max_retries={self.max_retries} must be >= 0.")
        return errors


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _safe_str(value: Any, default: str) -> str:
    if value is None:
        return default
    text = str(value).strip()
    return text if text else default


def _safe_int(value: Any, default: int) -> int:
    try:
        return int(float(str(value).strip()))
    except (TypeError, ValueError):
        return default


def _safe_float(value: Any, default: float) -> float:
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return default


def _positive(name: str, value: float, default: float) -> float:
    """*value* if it is a finite number > 0, else *default* (with a warning)."""
    if math.isfinite(value) and value > 0:
        return value
    logger.warning("Config: %s=%s must be > 0; using %s", name, value, default)
    return default
