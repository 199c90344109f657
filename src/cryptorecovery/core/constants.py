"""Shared constants for the Crypto Recovery planner.

Every tunable number used by the planner, the store and the lookup client
lives here so there is a single source of truth.
"""

from __future__ import annotations

from typing import Any

# ---------------------------------------------------------------------------
# Projection ladder
# ---------------------------------------------------------------------------
LADDER_DEPTH: int = 15  # rows emitted by every non-empty projection

# ---------------------------------------------------------------------------
# Default position template for the first start and for corrupt stores.
# ---------------------------------------------------------------------------
DEFAULT_POSITION_ID: str = "initial"
DEFAULT_POSITION_FIELDS: dict[str, Any] = {
    "id": DEFAULT_POSITION_ID,
    "symbol": "BTC",
    "coin_id": "bitcoin",
    "avg_price": 65000.0,
    "holdings": 0.5,
    "current_price": 58000.0,
    "available_funds": 10000.0,
    "drop_step": 5.0,
    "multiplier": 1.5,
    "base_buy": 1000.0,
    "strategy": "martingale",
}
NEW_POSITION_SYMBOL: str = "NEW"

# ---------------------------------------------------------------------------
# Price / search service (CoinGecko public API)
# ---------------------------------------------------------------------------
DEFAULT_API_BASE_URL: str = "https://api.coingecko.com/api/v3"
DEFAULT_VS_CURRENCY: str = "usd"
DEFAULT_SEARCH_LIMIT: int = 6
DEFAULT_SEARCH_DEBOUNCE_SECONDS: float = 0.6
DEFAULT_REQUEST_TIMEOUT: float = 10.0
DEFAULT_CALLS_PER_SECOND: float = 0.5  # free tier is ~30 calls/minute
DEFAULT_MAX_RETRIES: int = 2

# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------
SETTINGS_FILENAME: str = "recovery_settings.json"
SETTINGS_ENV_VAR: str = "CRYPTORECOVERY_SETTINGS"
DEFAULT_DATA_DIR: str = "recovery_data"
POSITIONS_FILENAME: str = "positions.json"
DEFAULT_LOG_DIR: str = "logs"
DEFAULT_LOG_LEVEL: str = "INFO"

# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------
HIGH_REBOUND_PCT: float = 20.0  # rebounds above this are flagged as steep
