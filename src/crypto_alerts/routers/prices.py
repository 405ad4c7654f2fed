"""Cryptocurrency price routes (CoinGecko via the shared rate-limited PriceService)."""
import logging

from fastapi import APIRouter, Path, Query

from crypto_alerts.deps import CurrentUser, PriceServiceDep, UsersServiceDep
from crypto_alerts.exceptions import PriceServiceError
from crypto_alerts.providers.core import ErrorMapper
from crypto_alerts.schemas import (CoinDetails, CoinMarket, CoinSearchHit,
                                   PriceBatchRequest, PriceLookup, PricePoint,
                                   PriceQuote, PriceSource, Watchlist)
from crypto_alerts.utils import utcnow

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/prices", tags=["prices"])

_errors = ErrorMapper()


@router.get("/search/{query}", response_model=list[CoinSearchHit])
async def search_coins(
    price_service: PriceServiceDep,
    query: str = Path(min_length=2, description="Name or ticker fragment"),
) -> list[CoinSearchHit]:
    """Search coins by name or ticker (first 10 hits)."""
    try:
        hits = await price_service.search(query)
    except PriceServiceError as e:
        _errors.raise_http(e)
    return hits[:10]


@router.get("/trending", response_model=list[CoinSearchHit])
async def get_trending(price_service: PriceServiceDep) -> list[CoinSearchHit]:
    """Coins trending on CoinGecko right now."""
    try:
        return await price_service.trending()
    except (PriceServiceError, NotImplementedError) as e:
        _errors.raise_http(e)


@router.get("/top", response_model=list[CoinMarket])
async def get_top(
    price_service: PriceServiceDep,
    limit: int = Query(default=50, ge=1, le=100, description="Number of coins"),
) -> list[CoinMarket]:
    """Top coins by market cap."""
    try:
        return await price_service.top_markets(limit)
    except (PriceServiceError, NotImplementedError) as e:
        _errors.raise_http(e)


@router.get("/history/{symbol}", response_model=list[PricePoint])
async def get_history(
    symbol: str,
    price_service: PriceServiceDep,
    days: int = Query(default=7, ge=1, le=365, description="Number of days of history"),
) -> list[PricePoint]:
    """Historical USD prices for a ticker (hourly for one day, daily otherwise)."""
    try:
        return await price_service.history(symbol, days)
    except (PriceServiceError, NotImplementedError) as e:
        _errors.raise_http(e, symbol=symbol)


@router.get("/details/{symbol}", response_model=CoinDetails)
async def get_details(symbol: str, price_service: PriceServiceDep) -> CoinDetails:
    """Coin profile with market cap, volume, supply and all-time high/low."""
    try:
        return await price_service.details(symbol)
    except (PriceServiceError, NotImplementedError) as e:
        _errors.raise_http(e, symbol=symbol)


@router.get("/watchlist", response_model=Watchlist)
async def get_watchlist(user: CurrentUser, users: UsersServiceDep) -> Watchlist:
    """Cached prices for the caller's alert and portfolio symbols (no live calls)."""
    return await users.watchlist(user.id)


@router.get("/{symbol}", response_model=PriceQuote)
async def get_price(symbol: str, price_service: PriceServiceDep) -> PriceQuote:
    """Current USD price for a ticker (e.g. "BTC"), served from the freshest tier.

    The `source` field tells whether the price came from a cache tier, a live
    call, or a stale fallback while the provider was throttling.
    """
    try:
        return await price_service.get_quote(symbol)
    except PriceServiceError as e:
        _errors.raise_http(e, symbol=symbol)


@router.post("", response_model=dict[str, PriceLookup])
async def get_prices(
    body: PriceBatchRequest, price_service: PriceServiceDep
) -> dict[str, PriceLookup]:
    """Price up to ten tickers. Per-symbol failures are reported inline."""
    batch = await price_service.get_batch_prices(body.symbols)
    now = utcnow()
    result: dict[str, PriceLookup] = {}
    for symbol in body.symbols:
        if symbol in result:
            continue
        if symbol in batch:
            await price_service.persist_price(symbol, batch[symbol])
            result[symbol] = PriceLookup(price=batch[symbol], source=PriceSource.BATCH, as_of=now)
            continue
        try:
            quote = await price_service.get_quote(symbol)
        except PriceServiceError as e:
            logger.info("Batch lookup for %s failed: %s", symbol, e)
            result[symbol] = PriceLookup(error=str(e))
            continue
        result[symbol] = PriceLookup(price=quote.price, source=quote.source, as_of=quote.as_of)
    return result
