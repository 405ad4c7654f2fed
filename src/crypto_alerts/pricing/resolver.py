"""Ticker to CoinGecko id resolution (static table, heuristic probes, search)."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from decimal import Decimal
from typing import TYPE_CHECKING

from crypto_alerts.exceptions import ProviderError, SymbolNotFound
from crypto_alerts.utils import normalize_symbol

if TYPE_CHECKING:
    from crypto_alerts.pricing.rate_limiter import RateLimiter
    from crypto_alerts.providers.core import PriceProviderABC

logger = logging.getLogger(__name__)

KNOWN_PROVIDER_IDS: dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "BNB": "binancecoin",
    "XRP": "ripple",
    "ADA": "cardano",
    "DOGE": "dogecoin",
    "SOL": "solana",
    "DOT": "polkadot",
    "AVAX": "avalanche-2",
    "LINK": "chainlink",
    "MATIC": "matic-network",
    "UNI": "uniswap",
    "ATOM": "cosmos",
    "LTC": "litecoin",
    "BCH": "bitcoin-cash",
}


class SymbolResolver:
    """Resolves a ticker (e.g. "BTC") to a provider id (e.g. "bitcoin").

    Known tickers resolve from a static table without I/O. Unknown tickers
    are probed against the single-price endpoint using heuristic candidate
    ids, then looked up via search. Every probe and search is gated by the
    shared rate limiter. Results are not memoized.
    """

    def __init__(
        self,
        provider: PriceProviderABC,
        rate_limiter: RateLimiter,
        *,
        probe_timeout: float = 5.0,
        known_ids: Mapping[str, str] | None = None,
    ) -> None:
        self._provider = provider
        self._limiter = rate_limiter
        self._probe_timeout = probe_timeout
        self._known = dict(KNOWN_PROVIDER_IDS if known_ids is None else known_ids)

    def known_provider_id(self, ticker: str) -> str | None:
        """Static mapping for a ticker, or None. Never touches the network."""
        return self._known.get(normalize_symbol(ticker))

    @staticmethod
    def candidates(ticker: str) -> list[str]:
        """Heuristic provider ids to probe, in order."""
        base = normalize_symbol(ticker).lower()
        return [base, f"{base}-2", f"{base}coin"]

    async def resolve(self, ticker: str) -> str:
        """Resolve a ticker to a provider id. See `resolve_with_price`."""
        provider_id, _ = await self.resolve_with_price(ticker)
        return provider_id

    async def resolve_with_price(self, ticker: str) -> tuple[str, Decimal | None]:
        """Resolve a ticker to a provider id, keeping any price seen on the way.

        A successful heuristic probe already fetched the USD price; it is
        returned so the caller does not spend another call on it. Static and
        search resolutions return None for the price.

        Raises:
            SymbolNotFound: no mapping, no candidate and no search hit.
            RateLimited: a probe or the search call was throttled.
            ProviderError: nothing matched and at least one call failed
                for a reason other than "not found".
        """
        symbol = normalize_symbol(ticker)
        if not symbol:
            raise SymbolNotFound(ticker)

        known = self._known.get(symbol)
        if known is not None:
            return known, None

        last_error: ProviderError | None = None
        for candidate in self.candidates(symbol):
            await self._limiter.acquire()
            try:
                price = await self._provider.get_price(candidate, timeout=self._probe_timeout)
            except SymbolNotFound:
                continue
            except ProviderError as exc:
                logger.debug("Probe %s for %s failed: %s", candidate, symbol, exc)
                last_error = exc
                continue
            logger.info("Resolved %s to %s by probing", symbol, candidate)
            return candidate, price

        await self._limiter.acquire()
        try:
            hits = await self._provider.search(symbol)
        except ProviderError as exc:
            logger.debug("Search for %s failed: %s", symbol, exc)
            hits = []
            last_error = exc

        for hit in hits:
            if hit.symbol.upper() == symbol:
                logger.info("Resolved %s to %s via search", symbol, hit.id)
                return hit.id, None

        if last_error is not None:
            raise ProviderError(
                f"Could not resolve '{symbol}': {last_error}",
                status_code=last_error.status_code,
            ) from last_error
        raise SymbolNotFound(symbol)
