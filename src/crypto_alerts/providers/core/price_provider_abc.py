"""Abstract base class for cryptocurrency price providers."""
from abc import ABC, abstractmethod
from collections.abc import Iterable
from decimal import Decimal

from crypto_alerts.schemas import (CoinDetails, CoinMarket, CoinSearchHit,
                                   PricePoint)


class PriceProviderABC(ABC):
    """Base interface for third-party price APIs.

    Providers only talk to the network and classify failures; they do not
    rate-limit or cache. Callers gate every method through the shared
    RateLimiter.

    Every method raises:
        RateLimited: the provider throttled the call (HTTP 429).
        ProviderError: any other HTTP status, timeout or transport failure.
    """

    @abstractmethod
    async def get_price(self, provider_id: str, *, timeout: float | None = None) -> Decimal:
        """Fetch the current USD price for one provider id.

        Raises:
            SymbolNotFound: The provider has no USD price for this id.
        """

    @abstractmethod
    async def get_prices(
        self, provider_ids: Iterable[str], *, timeout: float | None = None
    ) -> dict[str, Decimal]:
        """Fetch USD prices for many ids in one call; unknown ids are omitted."""

    @abstractmethod
    async def search(self, query: str) -> list[CoinSearchHit]:
        """Search coins by name or ticker."""

    async def trending(self) -> list[CoinSearchHit]:
        """Currently trending coins. Optional."""
        raise NotImplementedError("Trending coins are not supported by this provider")

    async def top_markets(self, limit: int = 50) -> list[CoinMarket]:
        """Top coins by market cap. Optional."""
        raise NotImplementedError("Market listings are not supported by this provider")

    async def get_history(self, provider_id: str, days: int) -> list[PricePoint]:
        """Historical USD prices over the last `days` days. Optional."""
        raise NotImplementedError("Historical data is not supported by this provider")

    async def get_details(self, provider_id: str) -> CoinDetails:
        """Coin profile and USD market data. Optional."""
        raise NotImplementedError("Coin details are not supported by this provider")

    async def close(self) -> None:
        """Clean up resources (connections, clients).

        Override in subclasses if cleanup is needed.
        """

    async def __aenter__(self) -> "PriceProviderABC":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        """Async context manager exit - calls close()."""
        await self.close()
