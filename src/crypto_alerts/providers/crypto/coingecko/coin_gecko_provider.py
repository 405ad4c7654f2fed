"""CoinGecko price provider for cryptocurrencies."""
import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import httpx

from crypto_alerts.exceptions import (ProviderError, RateLimited,
                                      SymbolNotFound)
from crypto_alerts.providers.core import (PriceProviderABC,
                                          normalize_provider_id,
                                          provider_decimal, usd_price)
from crypto_alerts.providers.crypto.coingecko.models import (
    CoinGeckoCoinParams, CoinGeckoHistoryParams, CoinGeckoMarketsParams,
    CoinGeckoSimplePriceParams)
from crypto_alerts.schemas import (CoinDetails, CoinMarket, CoinSearchHit,
                                   PricePoint)

logger = logging.getLogger(__name__)


def first_sentence(text: str) -> str | None:
    """First sentence of a coin description, or None if it is empty."""
    head = text.strip().split(". ", 1)[0].strip()
    if not head:
        return None
    return head if head.endswith(".") else f"{head}."


class CoinGeckoProvider(PriceProviderABC):
    """Price provider backed by the CoinGecko v3 REST API.

    Uses CoinGecko IDs (e.g. "bitcoin", "ethereum") as provider ids; tickers
    are mapped to ids by the SymbolResolver before reaching this class.
    """

    BASE_URL = "https://api.coingecko.com/api/v3"
    PRO_BASE_URL = "https://pro-api.coingecko.com/api/v3"

    def __init__(
        self,
        api_key: str | None = None,
        use_pro_api: bool = False,
        default_timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the CoinGecko provider.

        Args:
            api_key: CoinGecko API key (sent as x-cg-pro-api-key).
            use_pro_api: Whether to use the Pro API endpoint.
            default_timeout: Timeout in seconds when a call passes none.
            client: Pre-built client (tests inject one with a MockTransport).
        """
        self._default_timeout = default_timeout
        if client is not None:
            self._client = client
            return

        headers: dict[str, str] = {"Accept": "application/json"}
        if api_key:
            headers["x-cg-pro-api-key"] = api_key
        base = self.PRO_BASE_URL if (use_pro_api or api_key) else self.BASE_URL
        self._client = httpx.AsyncClient(
            base_url=base, headers=headers, timeout=default_timeout
        )

    async def _get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> Any:
        """GET a JSON document and classify failures.

        Raises:
            RateLimited: HTTP 429.
            ProviderError: any other error status, timeout or transport error.
        """
        logger.debug("CoinGecko GET %s params=%s", path, params)
        try:
            response = await self._client.get(
                path, params=params, timeout=timeout or self._default_timeout
            )
        except httpx.TimeoutException as exc:
            raise ProviderError(f"CoinGecko request to {path} timed out") from exc
        except httpx.TransportError as exc:
            raise ProviderError(f"CoinGecko request to {path} failed: {exc}") from exc

        if response.status_code == httpx.codes.TOO_MANY_REQUESTS:
            raise RateLimited(f"CoinGecko throttled {path}")
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ProviderError(
                f"CoinGecko returned {response.status_code} for {path}",
                status_code=response.status_code,
            ) from exc
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(f"CoinGecko returned invalid JSON for {path}") from exc

    async def get_price(self, provider_id: str, *, timeout: float | None = None) -> Decimal:
        """Fetch the current USD price for a CoinGecko id.

        Args:
            provider_id: CoinGecko ID (e.g., "bitcoin", "ethereum").
            timeout: Per-call timeout in seconds.

        Returns:
            The USD price.
        """
        coin_id = normalize_provider_id(provider_id)
        params = CoinGeckoSimplePriceParams().model_dump() | {"ids": coin_id}
        try:
            data = await self._get("/simple/price", params, timeout=timeout)
        except ProviderError as exc:
            if exc.status_code == httpx.codes.NOT_FOUND:
                raise SymbolNotFound(coin_id) from exc
            raise

        price = usd_price(data.get(coin_id)) if isinstance(data, dict) else None
        if price is None:
            raise SymbolNotFound(coin_id, f"No price data for '{coin_id}'")
        return price

    async def get_prices(
        self, provider_ids: Iterable[str], *, timeout: float | None = None
    ) -> dict[str, Decimal]:
        """Fetch USD prices for several CoinGecko ids in a single call."""
        ids = sorted({normalize_provider_id(p) for p in provider_ids})
        if not ids:
            return {}
        params = CoinGeckoSimplePriceParams().model_dump() | {"ids": ",".join(ids)}
        data = await self._get("/simple/price", params, timeout=timeout)
        if not isinstance(data, dict):
            return {}
        out: dict[str, Decimal] = {}
        for cid in ids:
            try:
                price = usd_price(data.get(cid))
            except ProviderError as exc:
                logger.warning("Skipping %s in batch response: %s", cid, exc)
                continue
            if price is not None:
                out[cid] = price
        return out

    async def search(self, query: str) -> list[CoinSearchHit]:
        """Search coins by name or ticker via /search."""
        data = await self._get("/search", {"query": query})
        return [self._search_hit(coin) for coin in data.get("coins", [])]

    async def trending(self) -> list[CoinSearchHit]:
        """Trending coins via /search/trending."""
        data = await self._get("/search/trending")
        hits: list[CoinSearchHit] = []
        for entry in data.get("coins", []):
            item = entry.get("item", {})
            change = (item.get("data") or {}).get("price_change_percentage_24h", {})
            hits.append(
                self._search_hit(
                    item,
                    price_change_percentage_24h=change.get("usd")
                    if isinstance(change, dict)
                    else item.get("price_change_percentage_24h"),
                )
            )
        return hits

    async def top_markets(self, limit: int = 50) -> list[CoinMarket]:
        """Top coins by market cap (single API call)."""
        params = CoinGeckoMarketsParams(per_page=limit).model_dump()
        data = await self._get("/coins/markets", params)
        return [
            CoinMarket(
                id=item["id"],
                name=item.get("name", item["id"]),
                symbol=str(item.get("symbol", "")).upper(),
                current_price=(
                    provider_decimal(item["current_price"])
                    if item.get("current_price") is not None
                    else None
                ),
                market_cap=item.get("market_cap"),
                market_cap_rank=item.get("market_cap_rank"),
                price_change_percentage_24h=item.get("price_change_percentage_24h"),
                image=item.get("image"),
            )
            for item in data
        ]

    async def get_history(self, provider_id: str, days: int) -> list[PricePoint]:
        """Historical USD prices for a CoinGecko id over the last `days` days."""
        coin_id = normalize_provider_id(provider_id)
        params = CoinGeckoHistoryParams.for_days(days).model_dump(exclude_none=True)
        try:
            data = await self._get(f"/coins/{coin_id}/market_chart", params)
        except ProviderError as exc:
            if exc.status_code == httpx.codes.NOT_FOUND:
                raise SymbolNotFound(coin_id) from exc
            raise
        return [
            PricePoint(
                timestamp=datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc),
                price=provider_decimal(price),
            )
            for ts_ms, price in (p[:2] for p in data.get("prices", []))
        ]

    async def get_details(self, provider_id: str) -> CoinDetails:
        """Coin profile and USD market data via /coins/{id}."""
        coin_id = normalize_provider_id(provider_id)
        try:
            data = await self._get(f"/coins/{coin_id}", CoinGeckoCoinParams().model_dump())
        except ProviderError as exc:
            if exc.status_code == httpx.codes.NOT_FOUND:
                raise SymbolNotFound(coin_id) from exc
            raise

        market = data.get("market_data") or {}

        def usd(field: str) -> Any:
            return (market.get(field) or {}).get("usd")

        def price(field: str) -> Decimal | None:
            value = usd(field)
            return provider_decimal(value) if value is not None else None

        description = (data.get("description") or {}).get("en") or ""
        return CoinDetails(
            id=data.get("id", coin_id),
            name=data.get("name", coin_id),
            symbol=str(data.get("symbol", "")).upper(),
            description=first_sentence(description),
            image=(data.get("image") or {}).get("large"),
            current_price=price("current_price"),
            market_cap=usd("market_cap"),
            market_cap_rank=data.get("market_cap_rank"),
            total_volume=usd("total_volume"),
            price_change_percentage_24h=market.get("price_change_percentage_24h"),
            price_change_percentage_7d=market.get("price_change_percentage_7d"),
            price_change_percentage_30d=market.get("price_change_percentage_30d"),
            all_time_high=price("ath"),
            all_time_low=price("atl"),
            circulating_supply=market.get("circulating_supply"),
            total_supply=market.get("total_supply"),
            max_supply=market.get("max_supply"),
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    @staticmethod
    def _search_hit(item: dict, **extra: Any) -> CoinSearchHit:
        return CoinSearchHit(
            id=item["id"],
            name=item.get("name", item["id"]),
            symbol=str(item.get("symbol", "")).upper(),
            market_cap_rank=item.get("market_cap_rank"),
            thumb=item.get("thumb"),
            **extra,
        )
