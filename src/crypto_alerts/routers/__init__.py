"""API routers.

Includes routes for:
- /prices - Cryptocurrency prices, search, trending, top coins and history (CoinGecko)
- /alerts - Price threshold alerts, alert tests, trigger history and on-demand sweeps
- /portfolio - Paper-trading positions with P&L
- /users - Contact-address registration
- /, /health - Liveness and rate-limit diagnostics
"""
from crypto_alerts.routers.alerts import router as alerts_router
from crypto_alerts.routers.health import router as health_router
from crypto_alerts.routers.portfolio import router as portfolio_router
from crypto_alerts.routers.prices import router as prices_router
from crypto_alerts.routers.users import router as users_router

__all__ = [
    "alerts_router",
    "health_router",
    "portfolio_router",
    "prices_router",
    "users_router",
]
