"""Domain concept for mapping pricing-core exceptions to HTTP responses."""
import asyncio
from dataclasses import dataclass

from fastapi import HTTPException

from crypto_alerts.exceptions import (PersistenceFailure, PriceUnavailable,
                                      ProviderError, RateLimited,
                                      SymbolNotFound)


@dataclass(frozen=True)
class ErrorMapper:
    """Maps pricing/persistence exceptions to HTTP (status_code, detail).

    Route handlers call raise_http() from their except clauses so every
    router reports exhaustion the same way.
    """

    resource_name: str = "Cryptocurrency"
    api_name: str = "CoinGecko"

    def to_http(
        self,
        exc: Exception,
        symbol: str | None = None,
    ) -> tuple[int, str]:
        """Map an exception to (status_code, detail) for HTTP responses.

        Args:
            exc: The exception raised by the pricing core, provider or store.
            symbol: Optional ticker to include in detail (e.g. "BTC").

        Returns:
            (status_code, detail) suitable for HTTPException(status_code=..., detail=...).
        """
        if isinstance(exc, SymbolNotFound):
            return (404, f"{self.resource_name} '{exc.symbol}' not found")
        if isinstance(exc, PriceUnavailable):
            return (503, str(exc))
        if isinstance(exc, RateLimited):
            return (429, f"{self.api_name} rate limit exceeded, try again later")
        if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
            detail = "Request timed out"
            if symbol is not None:
                detail = f"Request to {self.api_name} timed out for '{symbol}'"
            return (504, detail)
        if isinstance(exc, ProviderError):
            return (502, f"{self.api_name} error")
        if isinstance(exc, PersistenceFailure):
            return (500, "Storage error")
        if isinstance(exc, NotImplementedError):
            return (501, str(exc) or "Not implemented")
        return (500, "Internal server error")

    def raise_http(
        self,
        exc: Exception,
        symbol: str | None = None,
    ) -> None:
        """Map exception to HTTP and raise HTTPException. Never returns."""
        status_code, detail = self.to_http(exc, symbol=symbol)
        raise HTTPException(status_code=status_code, detail=detail) from exc
