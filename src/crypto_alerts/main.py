"""Main module for the crypto price alert service."""
import logging
from contextlib import asynccontextmanager
from datetime import timedelta

import uvicorn
from fastapi import FastAPI

from crypto_alerts.alerts import AlertSweep, SweepScheduler
from crypto_alerts.config import Settings, get_settings
from crypto_alerts.db.sessions import create_db_engine, init_db
from crypto_alerts.db.store import SqlStore
from crypto_alerts.notify import build_notifier
from crypto_alerts.pricing import PriceService, RateLimiter, SymbolResolver
from crypto_alerts.providers import CoinGeckoProvider
from crypto_alerts.routers import (alerts_router, health_router,
                                   portfolio_router, prices_router,
                                   users_router)
from crypto_alerts.services import (AlertsService, PortfolioService,
                                    UsersService)

logger = logging.getLogger(__name__)


def build_price_service(
    settings: Settings, provider: CoinGeckoProvider, store: SqlStore
) -> PriceService:
    """Wire the rate limiter, resolver and cache tiers around one provider."""
    rate_limiter = RateLimiter(
        settings.RATE_LIMIT_MAX_CALLS, settings.RATE_LIMIT_WINDOW_SECONDS
    )
    resolver = SymbolResolver(
        provider, rate_limiter, probe_timeout=settings.PROBE_TIMEOUT_SECONDS
    )
    return PriceService(
        provider,
        rate_limiter,
        store,
        resolver=resolver,
        persistent_ttl=timedelta(seconds=settings.PERSISTENT_CACHE_TTL_SECONDS),
        memory_ttl=timedelta(seconds=settings.MEMORY_CACHE_TTL_SECONDS),
        stale_persistent_max_age=timedelta(seconds=settings.STALE_PERSISTENT_MAX_AGE_SECONDS),
        fetch_timeout=settings.SINGLE_FETCH_TIMEOUT_SECONDS,
        batch_timeout=settings.BATCH_FETCH_TIMEOUT_SECONDS,
    )


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    """Create store, provider, pricing core and services at startup; stop them on shutdown."""
    settings = get_settings()

    engine = create_db_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)
    init_db(engine)
    store = SqlStore(engine)

    # One provider and one rate limiter shared by every consumer
    provider = CoinGeckoProvider(
        api_key=settings.COINGECKO_API_KEY,
        use_pro_api=settings.COINGECKO_USE_PRO,
        default_timeout=settings.SINGLE_FETCH_TIMEOUT_SECONDS,
    )
    price_service = build_price_service(settings, provider, store)

    sweep = AlertSweep(
        store,
        price_service,
        build_notifier(settings),
        individual_fetch_delay=settings.SWEEP_INDIVIDUAL_FETCH_DELAY_SECONDS,
    )
    scheduler = SweepScheduler(sweep, interval=settings.SWEEP_INTERVAL_SECONDS)

    fastapi_app.state.price_service = price_service
    fastapi_app.state.alerts_service = AlertsService(store, price_service)
    fastapi_app.state.portfolio_service = PortfolioService(store, price_service)
    fastapi_app.state.users_service = UsersService(store)
    fastapi_app.state.sweep_scheduler = scheduler

    if settings.SWEEP_ENABLED:
        scheduler.start()

    yield

    await scheduler.stop()
    try:
        await provider.close()
    except Exception as exc:  # pylint: disable=broad-except
        logger.warning("Error closing provider %s: %s", type(provider).__name__, exc)
    engine.dispose()


app = FastAPI(
    title="Crypto Price Alerts",
    description="Rate-limited crypto prices, threshold alerts and a paper-trading portfolio",
    version="0.1.0",
    lifespan=lifespan,
)

# Include routers
app.include_router(health_router)
app.include_router(prices_router)
app.include_router(alerts_router)
app.include_router(portfolio_router)
app.include_router(users_router)


def run():
    """Run the server (uvicorn). Use for `crypto-alerts-server`."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("crypto_alerts.main:app", host=settings.HOST, port=settings.PORT)
