"""Error taxonomy for price acquisition, caching and persistence.

Fetch-path errors are recovered locally wherever a fallback tier exists; only
total exhaustion surfaces one of these to a route handler or the sweep.
"""


class PriceServiceError(Exception):
    """Base class for all errors raised by the pricing core."""


class SymbolNotFound(PriceServiceError):
    """No static mapping, heuristic candidate or search hit for a ticker.

    Permanent for that input; nothing is written to any cache tier.
    """

    def __init__(self, symbol: str, message: str | None = None) -> None:
        self.symbol = symbol
        super().__init__(message or f"Cryptocurrency '{symbol}' not found")


class PriceUnavailable(PriceServiceError):
    """All cache tiers and the live fetch failed for a symbol (transient)."""

    def __init__(self, symbol: str, message: str | None = None) -> None:
        self.symbol = symbol
        super().__init__(message or f"Price for '{symbol}' is currently unavailable")


class RateLimited(PriceServiceError):
    """The provider signalled throttling (HTTP 429)."""

    def __init__(self, message: str = "Provider rate limit exceeded") -> None:
        super().__init__(message)


class ProviderError(PriceServiceError):
    """Generic provider failure: unexpected status, timeout or transport error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class PersistenceFailure(PriceServiceError):
    """Persistent store I/O failed. Swallowed and logged at the cache layer."""
