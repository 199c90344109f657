"""Abstract symbol/price lookup interface with a CoinGecko implementation.

The planner never calls the service from the core; the host uses a
:class:`PriceLookupClient` to find a coin id for a symbol and to refresh a
position's current price.  Keeping it behind an ABC lets tests and the CLI
run with a deterministic fake.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import requests

from cryptorecovery.core.constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_CALLS_PER_SECOND,
    DEFAULT_MAX_RETRIES,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SEARCH_LIMIT,
    DEFAULT_VS_CURRENCY,
)
from cryptorecovery.core.exceptions import ConfigError, PriceServiceError, RateLimitError
from cryptorecovery.core.retry import RateLimiter, retry
from cryptorecovery.models.search import CoinSearchResult

logger = logging.getLogger(__name__)


class PriceLookupClient(ABC):
    """Abstract symbol search + spot price source."""

    @abstractmethod
    def search(self, query: str) -> list[CoinSearchResult]:
        """Return coins matching *query*, best match first, capped."""

    @abstractmethod
    def fetch_price(self, coin_id: str) -> float:
        """Return the price per unit of *coin_id* in the quote currency.

        Raises :class:`~cryptorecovery.core.exceptions.PriceServiceError`
        if no usable price is available.
        """


# ---------------------------------------------------------------------------
# CoinGecko implementation
# ---------------------------------------------------------------------------


class CoinGeckoClient(PriceLookupClient):
    """CoinGecko public API (``/search`` and ``/simple/price``).

    No authentication.  Calls are paced by a :class:`RateLimiter` and
    retried a bounded number of times on network errors and HTTP 429.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_BASE_URL,
        vs_currency: str = DEFAULT_VS_CURRENCY,
        search_limit: int = DEFAULT_SEARCH_LIMIT,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        calls_per_second: float = DEFAULT_CALLS_PER_SECOND,
        max_retries: int = DEFAULT_MAX_RETRIES,
        session: requests.Session | None = None,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._vs_currency = vs_currency.lower()
        self._search_limit = search_limit
        self._timeout = timeout
        self._session = session if session is not None else requests.Session()
        self._session.headers.setdefault("Accept", "application/json")
        self._rate_limiter = rate_limiter or RateLimiter(calls_per_second)
        self._get_json = retry(
            max_retries=max_retries,
            base_delay=2.0,
            exceptions=(RateLimitError, requests.ConnectionError, requests.Timeout),
        )(self._get_json_once)

    @classmethod
    def from_config(cls, config: Any) -> CoinGeckoClient:
        """Build from an :class:`~cryptorecovery.core.config.AppConfig`.

        Raises :class:`ConfigError` if the pacing or timeout settings are
        unusable.
        """
        if config.calls_per_second <= 0 or config.request_timeout <= 0:
            raise ConfigError(
                f"calls_per_second={config.calls_per_second} and "
                f"request_timeout={config.request_timeout} must both be > 0"
            )
        return cls(
            base_url=config.api_base_url,
            vs_currency=config.vs_currency,
            search_limit=config.search_limit,
            timeout=config.request_timeout,
            calls_per_second=config.calls_per_second,
            max_retries=config.max_retries,
        )

    # -- public API -----------------------------------------------------------

    def search(self, query: str) -> list[CoinSearchResult]:
        query = query.strip()
        if not query:
            return []
        payload = self._request("/search", {"query": query})
        return self._parse_search(payload, self._search_limit)

    def fetch_price(self, coin_id: str) -> float:
        coin_id = coin_id.strip()
        if not coin_id:
            raise PriceServiceError("No price-source id set")
        payload = self._request(
            "/simple/price", {"ids": coin_id, "vs_currencies": self._vs_currency}
        )
        price = self._parse_price(payload, coin_id, self._vs_currency)
        if price is None:
            raise PriceServiceError(f"No {self._vs_currency} price for {coin_id!r}")
        return price

    # -- HTTP -----------------------------------------------------------------

    def _request(self, path: str, params: dict[str, str]) -> Any:
        try:
            return self._get_json(path, params)
        except (requests.RequestException, ValueError) as exc:
            raise PriceServiceError(f"GET {path} failed: {exc}") from exc

    def _get_json_once(self, path: str, params: dict[str, str]) -> Any:
        self._rate_limiter.acquire()
        url = f"{self._base_url}{path}"
        logger.debug("GET %s %s", url, params)
        resp = self._session.get(url, params=params, timeout=self._timeout)
        if resp.status_code == 429:
            raise RateLimitError(f"Rate limited by {self._base_url}")
        if resp.status_code >= 400:
            raise PriceServiceError(f"GET {path} returned HTTP {resp.status_code}")
        return resp.json()

    # -- parsing --------------------------------------------------------------

    @staticmethod
    def _parse_search(payload: Any, limit: int) -> list[CoinSearchResult]:
        """Convert a ``/search`` response into at most *limit* results.

        The response is ``{"coins": [{"id", "name", "symbol", "thumb", ...}]}``.
        """
        if not isinstance(payload, dict):
            return []
        coins = payload.get("coins")
        if not isinstance(coins, list):
            return []
        results: list[CoinSearchResult] = []
        for item in coins:
            if len(results) >= limit:
                break
            if not isinstance(item, dict):
                continue
            result = CoinSearchResult.from_dict(item)
            if result is not None:
                results.append(result)
        return results

    @staticmethod
    def _parse_price(payload: Any, coin_id: str, vs_currency: str) -> float | None:
        """Extract ``payload[coin_id][vs_currency]`` as a positive float."""
        if not isinstance(payload, dict):
            return None
        entry = payload.get(coin_id)
        if not isinstance(entry, dict):
            return None
        try:
            price = float(entry.get(vs_currency))
        except (TypeError, ValueError):
            return None
        return price if price > 0 else None
