"""Rate-limited, multi-tier price acquisition.

Lookup order for a single symbol:

1. persistent store, if the entry is younger than `persistent_ttl` (10 min);
2. in-process cache, if the entry is younger than `memory_ttl` (5 min);
3. live fetch: one rate-limit slot, resolve ticker -> provider id, single-price
   call with `fetch_timeout` (skipped when a resolver probe already priced the
   id); success writes through both tiers;
4. only when the provider throttled: persistent entry up to
   `stale_persistent_max_age` (60 min), then in-process entry of any age;
5. otherwise SymbolNotFound (unresolvable / no price) or PriceUnavailable.

Persistent-tier failures are logged and treated as a miss or a skipped write.
"""
import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta
from decimal import Decimal

from crypto_alerts.exceptions import (PersistenceFailure, PriceUnavailable,
                                      ProviderError, RateLimited,
                                      SymbolNotFound)
from crypto_alerts.pricing.cache import MemoryPriceCache
from crypto_alerts.pricing.outcome import FetchResult, FetchStatus
from crypto_alerts.pricing.protocols import PriceStore
from crypto_alerts.pricing.rate_limiter import RateLimiter
from crypto_alerts.pricing.resolver import SymbolResolver
from crypto_alerts.providers.core import PriceProviderABC
from crypto_alerts.schemas import (CoinDetails, CoinMarket, CoinSearchHit,
                                   PricePoint, PriceQuote, PriceSource)
from crypto_alerts.utils import normalize_symbol, utcnow

logger = logging.getLogger(__name__)


class PriceService:
    """Single entry point for prices shared by the sweep and request handlers.

    Every outbound provider call made here, or by the resolver it owns, first
    takes a slot from the shared RateLimiter.
    """

    def __init__(
        self,
        provider: PriceProviderABC,
        rate_limiter: RateLimiter,
        store: PriceStore | None = None,
        *,
        resolver: SymbolResolver | None = None,
        memory_cache: MemoryPriceCache | None = None,
        persistent_ttl: timedelta = timedelta(minutes=10),
        memory_ttl: timedelta = timedelta(minutes=5),
        stale_persistent_max_age: timedelta = timedelta(minutes=60),
        fetch_timeout: float = 15.0,
        batch_timeout: float = 15.0,
        now: Callable[[], datetime] = utcnow,
    ) -> None:
        self._provider = provider
        self._limiter = rate_limiter
        self._store = store
        self._resolver = resolver or SymbolResolver(provider, rate_limiter)
        self._memory = memory_cache if memory_cache is not None else MemoryPriceCache()
        self._persistent_ttl = persistent_ttl
        self._memory_ttl = memory_ttl
        self._stale_max_age = stale_persistent_max_age
        self._fetch_timeout = fetch_timeout
        self._batch_timeout = batch_timeout
        self._now = now

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._limiter

    @property
    def resolver(self) -> SymbolResolver:
        return self._resolver

    @property
    def memory_cache(self) -> MemoryPriceCache:
        return self._memory

    # ---- Single symbol ----
    async def get_price(self, symbol: str) -> Decimal:
        """USD price for a ticker. Raises SymbolNotFound or PriceUnavailable."""
        return (await self.get_quote(symbol)).price

    async def get_quote(self, symbol: str) -> PriceQuote:
        """USD price plus the tier that served it.

        Raises:
            SymbolNotFound: the ticker cannot be resolved or has no price.
            PriceUnavailable: every tier failed.
        """
        key = normalize_symbol(symbol)
        if not key:
            raise SymbolNotFound(symbol)

        now = self._now()
        stored = await self._read_persistent(key)
        if stored is not None and now - stored.last_updated < self._persistent_ttl:
            return PriceQuote(
                symbol=key,
                price=stored.price,
                source=PriceSource.PERSISTENT,
                as_of=stored.last_updated,
            )

        cached = self._memory.get(key)
        if cached is not None and cached.age(now) < self._memory_ttl:
            return PriceQuote(
                symbol=key,
                price=cached.price,
                source=PriceSource.MEMORY,
                as_of=cached.fetched_at,
            )

        result = await self._fetch_live(key)

        if result.status is FetchStatus.SUCCESS:
            fetched_at = self._now()
            await self._write_through(key, result.price, fetched_at)
            return PriceQuote(
                symbol=key, price=result.price, source=PriceSource.LIVE, as_of=fetched_at
            )

        if result.status is FetchStatus.NOT_FOUND:
            raise SymbolNotFound(key) from result.error

        if result.status is FetchStatus.THROTTLED:
            stale = await self._stale_quote(key)
            if stale is not None:
                logger.warning(
                    "Provider throttled %s; serving %s price from %s",
                    key,
                    stale.source.value,
                    stale.as_of.isoformat(),
                )
                return stale
            raise PriceUnavailable(
                key, f"Provider is rate limiting and no cached price exists for '{key}'"
            ) from result.error

        logger.warning("Live fetch for %s failed: %s", key, result.error)
        raise PriceUnavailable(key) from result.error

    async def _fetch_live(self, symbol: str) -> FetchResult:
        await self._limiter.acquire()
        try:
            provider_id, probed = await self._resolver.resolve_with_price(symbol)
            price = probed
            if price is None:
                price = await self._provider.get_price(provider_id, timeout=self._fetch_timeout)
        except SymbolNotFound as exc:
            return FetchResult.not_found(exc)
        except RateLimited as exc:
            return FetchResult.throttled(exc)
        except ProviderError as exc:
            return FetchResult.failed(exc)
        return FetchResult.success(price, provider_id)

    async def _stale_quote(self, symbol: str) -> PriceQuote | None:
        now = self._now()
        stored = await self._read_persistent(symbol)
        if stored is not None and now - stored.last_updated <= self._stale_max_age:
            return PriceQuote(
                symbol=symbol,
                price=stored.price,
                source=PriceSource.STALE_PERSISTENT,
                as_of=stored.last_updated,
            )
        cached = self._memory.get(symbol)
        if cached is not None:
            return PriceQuote(
                symbol=symbol,
                price=cached.price,
                source=PriceSource.STALE_MEMORY,
                as_of=cached.fetched_at,
            )
        return None

    async def _read_persistent(self, symbol: str):
        if self._store is None:
            return None
        try:
            return await self._store.get_price(symbol)
        except PersistenceFailure as exc:
            logger.warning("Persistent price read for %s failed: %s", symbol, exc)
            return None

    async def _write_through(self, symbol: str, price: Decimal, fetched_at: datetime) -> None:
        self._memory.set(symbol, price, fetched_at)
        await self.persist_price(symbol, price)

    async def persist_price(self, symbol: str, price: Decimal) -> bool:
        """Best-effort write to the persistent tier. Returns False on failure."""
        if self._store is None:
            return False
        try:
            await self._store.upsert_price(symbol, price)
        except PersistenceFailure as exc:
            logger.warning("Persistent price write for %s failed: %s", symbol, exc)
            return False
        return True

    # ---- Batch ----
    async def get_batch_prices(self, symbols: Iterable[str]) -> dict[str, Decimal]:
        """Prices for the statically mapped subset of `symbols` in one provider call.

        Unmapped symbols are silently left out and any provider failure yields
        an empty mapping; callers detect gaps by absence and fetch those
        individually. Hits are written to the in-process tier.
        """
        tickers_by_id: dict[str, list[str]] = {}
        for symbol in symbols:
            key = normalize_symbol(symbol)
            provider_id = self._resolver.known_provider_id(key)
            if provider_id is not None:
                tickers = tickers_by_id.setdefault(provider_id, [])
                if key not in tickers:
                    tickers.append(key)
        if not tickers_by_id:
            return {}

        await self._limiter.acquire()
        try:
            by_id = await self._provider.get_prices(
                tickers_by_id.keys(), timeout=self._batch_timeout
            )
        except (RateLimited, ProviderError) as exc:
            logger.warning(
                "Batch price fetch for %d ids failed: %s", len(tickers_by_id), exc
            )
            return {}

        fetched_at = self._now()
        prices: dict[str, Decimal] = {}
        for provider_id, price in by_id.items():
            for ticker in tickers_by_id.get(provider_id, []):
                prices[ticker] = price
                self._memory.set(ticker, price, fetched_at)
        return prices

    # ---- On-demand lookups (each gated) ----
    async def search(self, query: str) -> list[CoinSearchHit]:
        await self._limiter.acquire()
        return await self._provider.search(query)

    async def trending(self) -> list[CoinSearchHit]:
        await self._limiter.acquire()
        return await self._provider.trending()

    async def top_markets(self, limit: int = 50) -> list[CoinMarket]:
        await self._limiter.acquire()
        return await self._provider.top_markets(limit)

    async def history(self, symbol: str, days: int) -> list[PricePoint]:
        await self._limiter.acquire()
        provider_id = await self._resolver.resolve(symbol)
        return await self._provider.get_history(provider_id, days)

    async def details(self, symbol: str) -> CoinDetails:
        await self._limiter.acquire()
        provider_id = await self._resolver.resolve(symbol)
        return await self._provider.get_details(provider_id)
