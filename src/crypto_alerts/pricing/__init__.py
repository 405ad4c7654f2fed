"""Price acquisition core: rate limiting, symbol resolution and tiered caching."""
from crypto_alerts.pricing.cache import CacheEntry, MemoryPriceCache
from crypto_alerts.pricing.outcome import FetchResult, FetchStatus
from crypto_alerts.pricing.price_service import PriceService
from crypto_alerts.pricing.protocols import PriceStore
from crypto_alerts.pricing.rate_limiter import RateLimiter
from crypto_alerts.pricing.resolver import KNOWN_PROVIDER_IDS, SymbolResolver

__all__ = [
    "KNOWN_PROVIDER_IDS",
    "CacheEntry",
    "FetchResult",
    "FetchStatus",
    "MemoryPriceCache",
    "PriceService",
    "PriceStore",
    "RateLimiter",
    "SymbolResolver",
]
